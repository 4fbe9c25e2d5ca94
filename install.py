#!/usr/bin/env python3
"""Set up a local support-bot checkout.

Usage:
    python install.py          # Runtime dependencies only
    python install.py --dev    # Also installs pytest and pytest-asyncio
"""

import platform
import shutil
import subprocess
import sys
from pathlib import Path

MIN_PYTHON = (3, 11)
PROJECT_DIR = Path(__file__).resolve().parent
VENV_DIR = PROJECT_DIR / ".venv"
TEMPLATES = {"config.yaml": "config.example.yaml", ".env": ".env.example"}


def _venv_bin(name: str) -> Path:
    scripts = "Scripts" if platform.system() == "Windows" else "bin"
    return VENV_DIR / scripts / name


def check_python() -> None:
    found = sys.version_info[:2]
    if found < MIN_PYTHON:
        sys.exit(
            "support-bot needs Python %d.%d or newer (found %d.%d)" % (*MIN_PYTHON, *found)
        )
    print("Python %d.%d OK" % found)


def ensure_venv() -> None:
    if VENV_DIR.is_dir():
        print(f"Reusing {VENV_DIR.name}/")
        return
    print(f"Creating {VENV_DIR.name}/ ...")
    subprocess.check_call([sys.executable, "-m", "venv", str(VENV_DIR)])


def install_package(dev: bool) -> None:
    pip = str(_venv_bin("pip"))
    subprocess.check_call([pip, "install", "--quiet", "--upgrade", "pip"])
    target = "-e .[dev]" if dev else "."
    print(f"pip install {target}")
    subprocess.check_call([pip, "install", *target.split()], cwd=PROJECT_DIR)


def seed_config() -> list[str]:
    """Copy example files into place without overwriting. Returns what was created."""
    created = []
    for target, template in TEMPLATES.items():
        dst, src = PROJECT_DIR / target, PROJECT_DIR / template
        if dst.exists() or not src.exists():
            continue
        shutil.copy(src, dst)
        created.append(target)
    return created


def validate_config() -> bool:
    cmd = [str(_venv_bin("python")), "-m", "support_bot", "config-check"]
    return subprocess.call(cmd, cwd=PROJECT_DIR) == 0


def main() -> None:
    check_python()
    ensure_venv()
    install_package(dev="--dev" in sys.argv)

    created = seed_config()
    if created:
        print(f"Created {', '.join(created)} from the bundled examples")

    ok = validate_config()

    activate = r".\.venv\Scripts\activate" if platform.system() == "Windows" else "source .venv/bin/activate"
    print()
    print("support-bot is installed." if ok else "support-bot is installed, but config.yaml needs attention.")
    print(f"  activate : {activate}")
    print("  api key  : set ANTHROPIC_API_KEY in .env")
    print("  tools    : python -m support_bot tools")
    print("  run      : python -m support_bot")


if __name__ == "__main__":
    main()
