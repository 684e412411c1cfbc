from algomancer.achievements.definitions import ACHIEVEMENTS
from algomancer.achievements.registry import registry

for _definition in ACHIEVEMENTS:
    registry.register(_definition)
