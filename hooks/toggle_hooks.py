#!/usr/bin/env python3
"""
Toggle which hook events send notifications

Usage: python3 hooks/toggle_hooks.py [status|enable <hook-id>|disable <hook-id>|reset|help]
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hook_notify.toggler import main

if __name__ == "__main__":
    sys.exit(main())
