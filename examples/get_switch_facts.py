#!/usr/bin/env python3
"""Smoke-test script: collect switch facts through a NAPALM driver.

Usage::

    export SWITCH_HOST="172.17.9.10"
    export SWITCH_USERNAME="admin"
    export SWITCH_PASSWORD="your-password"
    export NAPALM_DRIVER="dellos10"   # optional, default ios
    python examples/get_switch_facts.py

Exit codes:
    0: facts collected and printed successfully.
    1: missing environment variable or driver error.
"""

from __future__ import annotations

import json
import os
import sys


def _env(name: str, default: str | None = None) -> str:
    value = os.environ.get(name, default)
    if value is None:
        print(f"ERROR: required environment variable {name!r} is not set.", file=sys.stderr)
        sys.exit(1)
    return value


def main() -> None:
    host = _env("SWITCH_HOST")
    username = _env("SWITCH_USERNAME")
    password = _env("SWITCH_PASSWORD")
    driver_name = _env("NAPALM_DRIVER", "ios")

    # Import here so import errors surface after env var check.
    from napalm import get_network_driver

    from asm_provider.client.napalm_facts import facts_from_napalm

    driver = get_network_driver(driver_name)(hostname=host, username=username, password=password)

    try:
        driver.open()
        facts = facts_from_napalm(driver)
    except Exception as exc:  # noqa: BLE001
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        driver.close()

    print(json.dumps(dict(facts), indent=2, default=str))


if __name__ == "__main__":
    main()
