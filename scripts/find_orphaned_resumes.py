"""List stored resumes that no applicant record references.

A resume is written before its record is inserted, so a failed insert leaves
the file behind. This lists those files; it never deletes anything.

Usage:
  source .venv/bin/activate
  python scripts/find_orphaned_resumes.py
"""

import sys
import os

# Ensure project root is on sys.path when running from scripts/ or other cwd
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

os.environ.setdefault("MAIL_VERIFY_ON_STARTUP", "false")

from intake import create_app


def main():
    app = create_app()
    with app.app_context():
        orphans = app.extensions["applicant_intake"].queries.orphaned_artifacts()
    for key in orphans:
        print(key)
    print(f"{len(orphans)} orphaned resume(s)", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
