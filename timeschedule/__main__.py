"""
``python -m timeschedule`` runs the same command line as the ``timeschedule``
console script, e.g.

    python -m timeschedule show 2026-10-19
    python -m timeschedule apply 2026-10-21 月曜授業 --custom 月123水45
"""

from timeschedule.cli import main

if __name__ == "__main__":
    main()
