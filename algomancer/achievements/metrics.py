from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from algomancer.achievements.interface import GameLogSource
from algomancer.utils.constants import BASIC_ELEMENTS
from algomancer.utils.helper import basic_elements, parse_deck_url
from algomancer.utils.tracing import trace_span

logger = logging.getLogger(__name__)

MULTI_ELEMENT_WEIGHT = 0.5


def _zero_tally() -> dict[str, float]:
    return {e: 0.0 for e in BASIC_ELEMENTS}


@dataclass
class MetricsSnapshot:
    total_logs: int = 0
    win_logs: int = 0
    constructed_logs: int = 0
    live_draft_logs: int = 0
    public_logs: int = 0
    mvp_logs: int = 0
    element_logs: dict[str, float] = field(default_factory=_zero_tally)
    element_wins: dict[str, float] = field(default_factory=_zero_tally)
    total_likes: int = 0
    deck_counts_per_day: list[int] = field(default_factory=list)


def element_weights(elements: Iterable[str]) -> dict[str, float]:
    '''Weight a log contributes to each named element.

    A single element gets 1.0; two or more get 0.5 each, however many
    there are.
    '''
    named = basic_elements(elements)
    if not named:
        return {}
    weight = 1.0 if len(named) == 1 else MULTI_ELEMENT_WEIGHT
    return {e: weight for e in named}


def constructed_deck_ref(row: dict[str, Any]) -> Optional[str]:
    deck_id = row.get('deck_id')
    if deck_id:
        return str(deck_id)
    return parse_deck_url(row.get('external_deck_url'))


class MetricsAggregator:
    def __init__(self, source: GameLogSource):
        self.source = source

    def compute(self, user_id: int) -> MetricsSnapshot:
        with trace_span('achievements.metrics', {'user_id': user_id}) as span:
            counts = self.source.count_metrics(user_id)
            snapshot = MetricsSnapshot(
                total_logs=int(counts.get('total_logs', 0)),
                win_logs=int(counts.get('win_logs', 0)),
                constructed_logs=int(counts.get('constructed_logs', 0)),
                live_draft_logs=int(counts.get('live_draft_logs', 0)),
                public_logs=int(counts.get('public_logs', 0)),
                mvp_logs=int(counts.get('mvp_logs', 0)),
            )
            self._tally_elements(user_id, snapshot)
            snapshot.total_likes = max(0, int(self.source.total_likes(user_id) or 0))
            snapshot.deck_counts_per_day = [
                int(count) for _, count in self.source.deck_counts_per_day(user_id)
            ]
            span.annotate(total_logs=snapshot.total_logs, wins=snapshot.win_logs)
        return snapshot

    def _tally_elements(self, user_id: int, snapshot: MetricsSnapshot) -> None:
        rows = self.source.element_rows(user_id)
        refs: set[str] = set()
        for row in rows:
            if row.get('format') == 'constructed':
                ref = constructed_deck_ref(row)
                if ref:
                    refs.add(ref)
        deck_elements = self.resolve_deck_elements(refs)

        for row in rows:
            if row.get('format') == 'live_draft':
                elements = row.get('elements_played') or []
            elif row.get('format') == 'constructed':
                ref = constructed_deck_ref(row)
                # unknown or deleted decks only count towards the totals
                elements = deck_elements.get(ref, []) if ref else []
            else:
                continue

            won = row.get('outcome') == 'win'
            for element, weight in element_weights(elements).items():
                snapshot.element_logs[element] += weight
                if won:
                    snapshot.element_wins[element] += weight

    def resolve_deck_elements(self, deck_ids: Iterable[str]) -> dict[str, list[str]]:
        '''Basic elements per deck with one batch query for all decks.

        Decks without precomputed elements fall back to their cards' element
        types, again fetched in one batch.
        '''
        ids = set(deck_ids)
        if not ids:
            return {}
        decks = self.source.deck_elements(ids)

        resolved: dict[str, list[str]] = {}
        needs_cards: dict[str, list[str]] = {}
        for deck_id, deck in decks.items():
            elements = basic_elements(deck.get('deck_elements'))
            if elements:
                resolved[deck_id] = elements
            elif deck.get('card_ids'):
                needs_cards[deck_id] = list(deck['card_ids'])

        if needs_cards:
            all_cards = {c for cards in needs_cards.values() for c in cards}
            types = self.source.card_element_types(all_cards)
            for deck_id, cards in needs_cards.items():
                resolved[deck_id] = basic_elements(types.get(c) for c in cards)

        missing = ids - decks.keys()
        if missing:
            logger.debug(f'{len(missing)} referenced decks could not be resolved')
        return resolved
