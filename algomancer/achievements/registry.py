from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, List

from algomancer.achievements.definitions import AchievementDefinition


class AchievementRegistry:
    def __init__(self) -> None:
        self._definitions: List[AchievementDefinition] = []

    def register(self, definition: AchievementDefinition) -> None:
        # Avoid duplicates by key
        if not any(d.key == definition.key for d in self._definitions):
            self._definitions.append(definition)

    def all(self) -> List[AchievementDefinition]:
        return list(self._definitions)


def group_series(
    definitions: Iterable[AchievementDefinition],
) -> 'OrderedDict[str, List[AchievementDefinition]]':
    groups: 'OrderedDict[str, List[AchievementDefinition]]' = OrderedDict()
    for d in definitions:
        if d.series_key:
            groups.setdefault(d.series_key, []).append(d)
    for members in groups.values():
        members.sort(key=lambda d: d.tier or 0)
    return groups


registry = AchievementRegistry()
