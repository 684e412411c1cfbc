import math
import re
from typing import Any, Iterable, NamedTuple, Optional
from urllib.parse import urlparse

from algomancer.utils.constants import BASIC_ELEMENTS, DECK_URL_HOSTS, RANKS

_DECK_PATH_RE = re.compile(r'^/decks/([0-9a-fA-F]{24})(?:/|$)')


class Rank(NamedTuple):
    key: str
    name: str
    min_xp: int
    max_xp: Optional[int]


class RankProgress(NamedTuple):
    current: Rank
    next: Optional[Rank]
    progress: float
    xp: int
    next_xp: Optional[int]


def _ranks_ascending() -> list[Rank]:
    ordered = sorted(RANKS, key=lambda r: r[0])
    ranks: list[Rank] = []
    for idx, (min_xp, key, name) in enumerate(ordered):
        max_xp = ordered[idx + 1][0] - 1 if idx + 1 < len(ordered) else None
        ranks.append(Rank(key=key, name=name, min_xp=min_xp, max_xp=max_xp))
    return ranks


RANK_LADDER = _ranks_ascending()


def _safe_xp(xp: Any) -> int:
    if isinstance(xp, bool) or not isinstance(xp, (int, float)):
        return 0
    if isinstance(xp, float) and math.isnan(xp):
        return 0
    return int(xp)


def rank_for_xp(xp: Any) -> Rank:
    value = _safe_xp(xp)
    for rank in reversed(RANK_LADDER):
        if value >= rank.min_xp:
            return rank
    return RANK_LADDER[0]


def rank_progress(xp: Any) -> RankProgress:
    '''Progress from the current rank's floor towards the next rank (0..1).'''
    value = _safe_xp(xp)
    current = rank_for_xp(value)
    idx = RANK_LADDER.index(current)
    nxt = RANK_LADDER[idx + 1] if idx + 1 < len(RANK_LADDER) else None
    if nxt is None:
        return RankProgress(current, None, 1.0, value, None)

    span = max(1, nxt.min_xp - current.min_xp)
    progress = min(max((value - current.min_xp) / span, 0.0), 1.0)
    return RankProgress(current, nxt, progress, value, nxt.min_xp)


def parse_deck_url(value: Any) -> Optional[str]:
    '''Return the deck id embedded in an Algomancer deck URL, or None.'''
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        url = urlparse(value.strip())
    except ValueError:
        return None
    if url.scheme not in ('http', 'https'):
        return None
    if (url.hostname or '') not in DECK_URL_HOSTS:
        return None
    match = _DECK_PATH_RE.match(url.path or '')
    return match.group(1).lower() if match else None


def basic_elements(values: Iterable[Any] | None) -> list[str]:
    '''Keep only the five basic elements, in canonical order, without repeats.

    Hybrid types such as "Fire/Water" contribute each part.
    '''
    found: set[str] = set()
    for value in values or ():
        if not isinstance(value, str):
            continue
        for part in value.split('/'):
            part = part.strip()
            if part in BASIC_ELEMENTS:
                found.add(part)
    return [e for e in BASIC_ELEMENTS if e in found]


_DECK_ID_RE = re.compile(r'^[0-9a-fA-F]{24}$')


def parse_deck_reference(value: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    '''Split a /log deck argument into (deck_id, external_deck_url).

    Accepts a bare 24-hex deck id or an Algomancer deck URL.
    '''
    if value is None or not value.strip():
        return None, None
    value = value.strip()
    if _DECK_ID_RE.match(value):
        return value.lower(), None
    if parse_deck_url(value):
        return None, value
    raise ValueError('Deck must be a deck id or an Algomancer deck link')


def parse_element_list(value: Optional[str]) -> list[str]:
    '''"fire, water" -> ['Fire', 'Water']; unknown names are ignored.'''
    if not value:
        return []
    parts = [p for p in re.split(r'[,\s]+', value) if p]
    return basic_elements('/'.join(s.capitalize() for s in p.split('/')) for p in parts)


def progress_bar(fraction: float, width: int = 10) -> str:
    filled = int(round(min(max(fraction, 0.0), 1.0) * width))
    return '▰' * filled + '▱' * (width - filled)
