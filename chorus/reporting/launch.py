"""
Launch request construction.

Builds the start-launch request from the launch config, adding the system
attributes that identify the reporting agent and its runtime.
"""

from __future__ import annotations

import platform
from datetime import datetime

from .. import __version__
from ..config import LaunchConfig
from ..transport import ItemAttribute, StartLaunchRequest
from .formatting import parse_attributes

AGENT_NAME = "chorus"
SKIPPED_ISSUE_KEY = "skippedIssue"


def system_attributes() -> list[ItemAttribute]:
    """Attributes describing the agent, operating system and interpreter."""
    return [
        ItemAttribute(key="agent", value=f"{AGENT_NAME}|{__version__}", system=True),
        ItemAttribute(key="os", value=f"{platform.system()}|{platform.release()}", system=True),
        ItemAttribute(
            key="python",
            value=f"{platform.python_implementation()}|{platform.python_version()}",
            system=True,
        ),
    ]


def build_launch_request(launch: LaunchConfig, start_time: datetime) -> StartLaunchRequest:
    """Build the start-launch request for a configured launch."""
    attributes = parse_attributes(launch.attributes)
    attributes.extend(system_attributes())
    if launch.skipped_issue is not None:
        attributes.append(
            ItemAttribute(
                key=SKIPPED_ISSUE_KEY,
                value=str(launch.skipped_issue).lower(),
                system=True,
            )
        )

    return StartLaunchRequest(
        name=launch.name,
        start_time=start_time,
        mode=launch.mode.value,
        attributes=attributes,
        description=launch.description,
        rerun=launch.rerun,
        rerun_of=launch.rerun_of if launch.rerun_of else None,
    )
