"""Tests for the combat resolver."""

import random

from botworld.engine.combat import bot_attack_power, defeat_xp, resolve, target_defense_power
from botworld.models.account import BotConfig, BotPlayer, HumanPlayer, Resources

from conftest import ScriptedRandom


def _bot(strength=0, defense=0, tier=3, beer_base=False):
    return BotPlayer(
        username="Alpha-Prime",
        total_strength=strength,
        total_defense=defense,
        config=BotConfig(tier=tier, is_special_base=beer_base),
    )


def _player(strength=0, defense=0, balance=1.0, metal=10_000, energy=5_000):
    return HumanPlayer(
        username="alice",
        total_strength=strength,
        total_defense=defense,
        balance_multiplier=balance,
        resources=Resources(metal=metal, energy=energy),
    )


class TestPower:
    def test_bot_attack_power(self):
        assert bot_attack_power(_bot(strength=1000, defense=400)) == 1200

    def test_target_defense_power_uses_balance(self):
        assert target_defense_power(_player(strength=400, defense=1000, balance=1.5)) == 1800

    def test_defeat_xp(self):
        assert defeat_xp(_bot(tier=3)) == 125
        assert defeat_xp(_bot(tier=3, beer_base=True)) == 187


class TestResolve:
    def test_overwhelming_defense_always_wins(self):
        bot = _bot(strength=1000)
        target = _player(defense=2000)
        rng = random.Random(11)
        outcomes = [resolve(bot, target, rng) for _ in range(500)]
        assert not any(o.bot_wins for o in outcomes)
        assert all(o.resources_stolen == Resources() for o in outcomes)

    def test_bot_win_steals_share(self):
        # rolls: bot at the top of its range, target at the bottom, minimum steal share
        rng = ScriptedRandom([1.0, 0.0, 0.0])
        outcome = resolve(_bot(strength=1000), _player(defense=1000), rng)
        assert outcome.bot_wins
        assert outcome.bot_power >= 1199
        assert outcome.target_power == 800
        assert outcome.resources_stolen == Resources(metal=1_000, energy=500)
        assert outcome.xp_awarded == 25

    def test_tie_goes_to_defender(self):
        rng = ScriptedRandom([0.5, 0.5])
        outcome = resolve(_bot(strength=1000), _player(defense=1000), rng)
        assert not outcome.bot_wins
        assert outcome.xp_awarded == defeat_xp(_bot())

    def test_stolen_within_bounds(self):
        rng = random.Random(3)
        target = _player(defense=0, metal=100_000, energy=100_000)
        for _ in range(200):
            outcome = resolve(_bot(strength=500), target, rng)
            assert 10_000 <= outcome.resources_stolen.metal <= 30_000

    def test_resolve_does_not_mutate(self):
        bot, target = _bot(strength=5000), _player()
        resolve(bot, target, random.Random(1))
        assert target.resources == Resources(metal=10_000, energy=5_000)
