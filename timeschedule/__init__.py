"""
TimeSchedule – weekly timetable with per-date special schedules.
"""
