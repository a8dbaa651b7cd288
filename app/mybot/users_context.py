# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/2 16:30
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Team member profiles used to personalise translations
"""
from types import MappingProxyType
from typing import Mapping, Optional

from models import NameTranslations, UserContext

USERS_CONTEXT: Mapping[str, UserContext] = MappingProxyType(
    {
        "Erik Sytnyk": UserContext(
            gender="male",
            native_language="russian",
            english_level="advanced",
            name_translations=NameTranslations(
                english="Erik", thai="อีริค", russian="Эрик", ukrainian="Ерік"
            ),
            aliases=("Erik", "erik_sytnyk"),
        ),
        "Nana Thailand": UserContext(
            gender="female",
            native_language="thai",
            english_level="basic",
            name_translations=NameTranslations(
                english="Nana", thai="นานา", russian="Нана", ukrainian="Нана"
            ),
            aliases=("Nana", "nanathailand"),
        ),
        "Andrew Temchenko": UserContext(
            gender="male",
            native_language="russian",
            english_level="intermediate",
            name_translations=NameTranslations(
                english="Andrew", thai="แอนดรูว์", russian="Андрей", ukrainian="Андрій"
            ),
            aliases=("Andrey", "Андрей", "orbios_andrew"),
        ),
        "Olha Kyrylenko": UserContext(
            gender="female",
            native_language="russian",
            english_level="basic",
            name_translations=NameTranslations(
                english="Olha", thai="โอลห่า", russian="Оля", ukrainian="Ольга"
            ),
            aliases=("Olya", "Ольга", "kyrylenko_olha"),
        ),
    }
)


def find_user_context(
    user_name: str, users: Mapping[str, UserContext] = USERS_CONTEXT
) -> Optional[UserContext]:
    """Exact display-name match first, then a linear scan over aliases."""
    if not user_name:
        return None

    if context := users.get(user_name):
        return context

    for context in users.values():
        if user_name in context.aliases:
            return context

    return None
