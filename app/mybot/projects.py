# -*- coding: utf-8 -*-
"""
Projects that own an input channel under the Inputs category
"""
from typing import NamedTuple, Optional

INPUTS_CATEGORY_NAME = "🧠 Inputs"
UPDATES_CATEGORY_NAME = "📢 Updates"
CHATS_CATEGORY_NAME = "💬 Chats"


class Project(NamedTuple):
    code: str
    label: str


SUPPORTED_PROJECTS = (
    Project(code="orbios", label="Orbios"),
    Project(code="orbios-camp", label="Orbios Camp"),
    Project(code="team-fusion", label="TeamFusion"),
)


def get_project_by_code(code: str) -> Optional[Project]:
    for project in SUPPORTED_PROJECTS:
        if project.code == code:
            return project
    return None
