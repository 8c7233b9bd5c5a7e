#!/usr/bin/env python3
"""
Checks the Shotstack configuration from the command line.
Exits with status 1 when the key is missing or malformed.
"""

import sys

from config import get_shotstack_config, mask_for_log
from errors import ConfigError


def check_env() -> int:
    try:
        cfg = get_shotstack_config()
    except ConfigError as e:
        print("❌ Shotstack config error:")
        print(f"   {e.message}")
        return 1

    print("✅ Shotstack config is valid")
    print(f"   Host: {cfg.host}")
    print(f"   Key:  {mask_for_log(cfg.api_key)}")
    print(f"   Length: {len(cfg.api_key)} chars")
    return 0


if __name__ == "__main__":
    sys.exit(check_env())
