#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Automated-agent detection.

Robots may read pages but never create, edit or remove them.  An agent is a
robot when its User-Agent contains one of ``Settings.robot_agents``
(case-insensitive).  A missing User-Agent counts as a robot only when
``Settings.no_ua_is_robot`` is set.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from .config import Settings


# -----------------------------------------------------------------------------

def is_robot(user_agent: str | None, settings: Settings) -> bool:
    ua = (user_agent or "").strip().lower()
    if not ua:
        return settings.no_ua_is_robot
    return any(agent.lower() in ua for agent in settings.robot_agents if agent)


# -----------------------------------------------------------------------------
