from __future__ import annotations

from pbkdf2_mod.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
