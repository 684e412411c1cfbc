from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from algomancer.utils.constants import (
    BASIC_ELEMENTS,
    CHAIN_THRESHOLDS,
    CHAIN_TIER_LABELS,
    RARITY_META,
)

Rarity = Literal['common', 'uncommon', 'rare', 'epic', 'legendary']

CountKind = Literal[
    'total_logs',
    'wins',
    'constructed_logs',
    'live_draft_logs',
    'public_logs',
    'mvp_logs',
]
ElementKind = Literal['element_logs', 'element_wins']


@dataclass(frozen=True)
class CountCriteria:
    type: CountKind
    count: int


@dataclass(frozen=True)
class ElementCriteria:
    type: ElementKind
    element: str
    count: int


Criteria = Union[CountCriteria, ElementCriteria]


@dataclass(frozen=True)
class AchievementDefinition:
    key: str
    title: str
    description: str
    rarity: Rarity
    icon: str
    criteria: Criteria
    series_key: Optional[str] = None
    tier: Optional[int] = None

    @property
    def xp(self) -> int:
        return xp_for_rarity(self.rarity)

    @property
    def color(self) -> str:
        return rarity_color(self.rarity)


def xp_for_rarity(rarity: str) -> int:
    return RARITY_META[rarity][0]


def rarity_color(rarity: str) -> str:
    return RARITY_META[rarity][1]


def rarity_label(rarity: str) -> str:
    return RARITY_META[rarity][2]


def _standalone() -> list[AchievementDefinition]:
    return [
        AchievementDefinition(
            key='first_log',
            title='First Log',
            description='Record your first game log.',
            rarity='rare',
            icon='LOG',
            criteria=CountCriteria('total_logs', 1),
        ),
        AchievementDefinition(
            key='constructed_debut',
            title='Constructed Debut',
            description='Log your first constructed match.',
            rarity='common',
            icon='CON',
            criteria=CountCriteria('constructed_logs', 1),
        ),
        AchievementDefinition(
            key='draft_debut',
            title='Draft Debut',
            description='Log your first live draft match.',
            rarity='common',
            icon='DRF',
            criteria=CountCriteria('live_draft_logs', 1),
        ),
        AchievementDefinition(
            key='first_win',
            title='First Victory',
            description='Record your first win.',
            rarity='epic',
            icon='WIN',
            criteria=CountCriteria('wins', 1),
        ),
        AchievementDefinition(
            key='public_record',
            title='Public Record',
            description='Make a game log public.',
            rarity='uncommon',
            icon='PUB',
            criteria=CountCriteria('public_logs', 1),
        ),
        AchievementDefinition(
            key='mvp_spotlight',
            title='MVP Spotlight',
            description='Record at least one MVP card.',
            rarity='uncommon',
            icon='MVP',
            criteria=CountCriteria('mvp_logs', 1),
        ),
    ]


# tier rarities, lowest tier first
COUNT_CHAIN_RARITIES: tuple[Rarity, ...] = ('uncommon', 'rare', 'epic', 'legendary')
ELEMENT_CHAIN_RARITIES: tuple[Rarity, ...] = ('common', 'uncommon', 'rare', 'epic')


def build_count_chain(
    series_key: str,
    kind: CountKind,
    key_prefix: str,
    titles: tuple[str, ...],
    noun: str,
    icon: str,
) -> list[AchievementDefinition]:
    chain = []
    for tier, (threshold, title, rarity) in enumerate(
        zip(CHAIN_THRESHOLDS, titles, COUNT_CHAIN_RARITIES), start=1
    ):
        chain.append(
            AchievementDefinition(
                key=f'{key_prefix}_{threshold}',
                title=title,
                description=f'{noun} {threshold} games.',
                rarity=rarity,
                icon=f'{threshold}{icon}',
                criteria=CountCriteria(kind, threshold),
                series_key=series_key,
                tier=tier,
            )
        )
    return chain


def build_element_chains(
    elements: tuple[str, ...] = BASIC_ELEMENTS,
) -> list[AchievementDefinition]:
    '''One played chain and one wins chain per element, four tiers each.'''
    chains: list[AchievementDefinition] = []
    for element in elements:
        slug = element.lower()
        for kind, criteria_type, verb in (
            ('played', 'element_logs', 'Log'),
            ('wins', 'element_wins', 'Win'),
        ):
            series_key = f'{slug}_{kind}'
            for tier, (threshold, label, rarity) in enumerate(
                zip(CHAIN_THRESHOLDS, CHAIN_TIER_LABELS, ELEMENT_CHAIN_RARITIES),
                start=1,
            ):
                noun = 'Adept' if kind == 'played' else 'Victor'
                chains.append(
                    AchievementDefinition(
                        key=f'{series_key}_{threshold}',
                        title=f'{element} {noun} {label}',
                        description=(
                            f'{verb} {threshold} games with {element}. '
                            'Multi-element games count as half.'
                        ),
                        rarity=rarity,
                        icon=f'{element[:2].upper()}{label}',
                        criteria=ElementCriteria(criteria_type, element, threshold),
                        series_key=series_key,
                        tier=tier,
                    )
                )
    return chains


def build_catalog() -> tuple[AchievementDefinition, ...]:
    return tuple(
        [
            *_standalone(),
            *build_count_chain(
                'log_count',
                'total_logs',
                'logs',
                ('Getting Consistent', 'Chronicler', 'Archivist', 'Historian'),
                'Log',
                'X',
            ),
            *build_count_chain(
                'win_count',
                'wins',
                'wins',
                ('Contender', 'Victor', 'Champion', 'Conqueror'),
                'Win',
                'W',
            ),
            *build_element_chains(),
        ]
    )


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = build_catalog()


def meets_criteria(criteria: Criteria, metrics) -> bool:
    '''Evaluate one criteria against a MetricsSnapshot.'''
    if isinstance(criteria, ElementCriteria):
        if criteria.type == 'element_logs':
            tally = metrics.element_logs
        elif criteria.type == 'element_wins':
            tally = metrics.element_wins
        else:
            return False
        return tally.get(criteria.element, 0.0) >= criteria.count

    value = {
        'total_logs': metrics.total_logs,
        'wins': metrics.win_logs,
        'constructed_logs': metrics.constructed_logs,
        'live_draft_logs': metrics.live_draft_logs,
        'public_logs': metrics.public_logs,
        'mvp_logs': metrics.mvp_logs,
    }.get(criteria.type)
    if value is None:
        return False
    return value >= criteria.count
