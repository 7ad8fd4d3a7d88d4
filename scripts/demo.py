#!/usr/bin/env python3
"""
Dodgeball — Checkpoint Demo Script

Reports a tracking event, then runs a checkpoint against a live Dodgeball
endpoint and prints how the verification resolved.

Usage:
    1. export DODGEBALL_SECRET_KEY=...
    2. export DODGEBALL_API_URL=https://api.sandbox.dodgeballhq.com/   (optional)
    3. python scripts/demo.py [CHECKPOINT_NAME]

Set DODGEBALL_IS_ENABLED=false to see the local bypass without any request.

Requires: httpx, pydantic
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from uuid import uuid4

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dodgeball_sdk import Dodgeball, DodgeballConfig, DodgeballMissingParameterError

SECRET_KEY = os.environ.get("DODGEBALL_SECRET_KEY", "")

# ---------------------------------------------------------------------------
# Terminal colors (ANSI)
# ---------------------------------------------------------------------------

class C:
    RESET   = "\033[0m"
    BOLD    = "\033[1m"
    DIM     = "\033[2m"
    RED     = "\033[91m"
    GREEN   = "\033[92m"
    YELLOW  = "\033[93m"
    CYAN    = "\033[96m"
    WHITE   = "\033[97m"
    BG_RED  = "\033[41m"
    BG_GREEN = "\033[42m"
    BG_YELLOW = "\033[43m"


def banner(text: str, color: str = C.CYAN):
    width = 64
    print()
    print(f"{color}{C.BOLD}{'=' * width}{C.RESET}")
    print(f"{color}{C.BOLD}  {text}{C.RESET}")
    print(f"{color}{C.BOLD}{'=' * width}{C.RESET}")
    print()


def info(text: str):
    print(f"  {C.DIM}{text}{C.RESET}")


def outcome_badge(response) -> str:
    if response.is_allowed():
        return f"{C.BG_GREEN}{C.WHITE}{C.BOLD} ALLOWED {C.RESET}"
    if response.is_denied():
        return f"{C.BG_RED}{C.WHITE}{C.BOLD} DENIED {C.RESET}"
    if response.is_timeout():
        return f"{C.BG_YELLOW}{C.WHITE}{C.BOLD} TIMEOUT {C.RESET}"
    if response.is_running():
        return f"{C.BG_YELLOW}{C.WHITE}{C.BOLD} RUNNING {C.RESET}"
    if response.is_undecided():
        return f"{C.BOLD} UNDECIDED {C.RESET}"
    return f"{C.RED}{C.BOLD} ERROR {C.RESET}"


def main():
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    checkpoint_name = sys.argv[1] if len(sys.argv) > 1 else "LOGIN"
    config = DodgeballConfig()

    banner("DODGEBALL  --  Checkpoint Demo")
    info(f"API:     {config.api_url}{config.api_version.value}/")
    info(f"Enabled: {config.is_enabled}")

    try:
        client = Dodgeball(SECRET_KEY, config)
    except DodgeballMissingParameterError as exc:
        print(f"  {C.RED}{exc}{C.RESET}")
        print(f"  {C.YELLOW}export DODGEBALL_SECRET_KEY=... first{C.RESET}")
        sys.exit(1)

    session_id = str(uuid4())

    with client:
        banner("1. Track event")
        delivered = client.event(
            {"type": "DEMO_PAGE_VIEW", "data": {"path": "/login"}},
            session_id=session_id,
        )
        info(f"Delivered: {delivered}")

        banner(f"2. Checkpoint {checkpoint_name}")
        response = client.checkpoint(
            checkpoint_name,
            {"ip": "127.0.0.1", "data": {"demo": True}},
            session_id=session_id,
            options={"timeout": 10000},
        )
        print(f"  {outcome_badge(response)}  "
              f"verification={response.verification.id or '?'}")
        print()
        raw = json.dumps(response.model_dump(mode="json", by_alias=True), indent=4)
        for line in raw.split("\n"):
            print(f"    {C.DIM}{line}{C.RESET}")

    sys.exit(0 if not response.has_error() else 2)


if __name__ == "__main__":
    main()
