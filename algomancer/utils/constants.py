# Bonus XP
LIKE_XP = 5
DECK_CREATE_XP = 10
DECK_CREATE_DAILY_XP_CAP = 50  # 5 decks per calendar day earn XP

# rarity -> (xp, colour, label)
RARITY_META = {
    'common': (5, '#9CA3AF', 'Common'),
    'uncommon': (10, '#A78BFA', 'Uncommon'),
    'rare': (20, '#F59E0B', 'Rare'),
    'epic': (35, '#10B981', 'Epic'),
    'legendary': (50, '#EF4444', 'Legendary'),
}

BASIC_ELEMENTS = ('Fire', 'Water', 'Earth', 'Wood', 'Metal')

CHAIN_THRESHOLDS = (5, 10, 25, 50)
CHAIN_TIER_LABELS = ('I', 'II', 'III', 'IV')

ACHIEVEMENT_BADGE_TYPE = 'achievement'

# (min_xp, key, name), highest first
RANKS = [
    (800, 'echelon', 'Echelon'),
    (500, 'ascendant', 'Ascendant'),
    (300, 'architect', 'Architect'),
    (150, 'catalyst', 'Catalyst'),
    (50, 'subject', 'Subject'),
    (0, 'awakened', 'Awakened'),
]

DECK_URL_HOSTS = {
    'algomancer.cc',
    'www.algomancer.cc',
    'algomancer.gg',
    'www.algomancer.gg',
}

