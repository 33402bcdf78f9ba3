import sys
from pathlib import Path

_SRC = str(Path(__file__).resolve().parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

from main import main  # noqa: E402  (src/main.py)

if __name__ == "__main__":
    main()
