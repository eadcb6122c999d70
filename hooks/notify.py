#!/usr/bin/env python3
"""
Notification Hook Script

Configure in ~/.claude/settings.json, one entry per event:
  "Stop": [{"hooks": [{"type": "command", "command": "python3 /path/to/hooks/notify.py Stop"}]}]

Receives: JSON via stdin with hook details
Action: Sends Bark / DingTalk notification
Output: Exit code 0
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hook_notify.dispatcher import run

if __name__ == "__main__":
    run()
