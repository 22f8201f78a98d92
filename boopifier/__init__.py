"""Boopifier: universal notification dispatcher for coding-agent hook events.

Reads one hook event as JSON on stdin, picks the handlers whose match rules
hold, and fans out to their notification backends concurrently.

Example configuration in ~/.claude/boopifier.json:

    {
      "handlers": [
        {
          "name": "done-sound",
          "type": "sound",
          "match_rules": {"hook_event_name": "Stop"},
          "config": {"file": "~/sounds/done.wav"}
        },
        {
          "name": "needs-input",
          "type": "desktop",
          "match_rules": {"any": [
            {"hook_event_name": "Notification"},
            {"hook_event_name": "PermissionRequest"}
          ]},
          "config": {"title": "Claude", "message": "{{message}}"}
        }
      ]
    }
"""

from __future__ import annotations

__version__ = "0.3.0"
