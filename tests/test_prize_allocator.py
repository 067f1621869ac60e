import random
import unittest

from pianojury.prize_assignment import (
    PrizeTierAllocator,
    PrizeTierConfig,
    ScoredParticipant,
    compute_prize_assignments,
    tie_key,
)


def _participant(pid: str, score=None, *, count: int = 3) -> ScoredParticipant:
    if score is None:
        return ScoredParticipant(id=pid, name=pid.title())
    return ScoredParticipant(
        id=pid, name=pid.title(), average_score=score, score_count=count
    )


def _tier(level: str, order: int, cap: int, low=None, high=None) -> PrizeTierConfig:
    return PrizeTierConfig(
        prize_level=level,
        display_order=order,
        max_winners=cap,
        min_score=low,
        max_score=high,
    )


def _ids(participants) -> list[str]:
    return [p.id for p in participants]


class TestScenarios(unittest.TestCase):
    def test_lone_leader_wins_and_tied_followers_cascade(self):
        participants = [_participant("a", 95), _participant("b", 90), _participant("c", 90)]
        result = compute_prize_assignments(
            participants, [_tier("1st Place", 1, 1, 90, 100)]
        )

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.unassigned), ["b", "c"])
        self.assertTrue(all(p.prize_level is None for p in result.unassigned))

    def test_leading_tie_overrides_cap(self):
        participants = [_participant(pid, 90) for pid in ("a", "b", "c")]
        result = compute_prize_assignments(
            participants, [_tier("1st Place", 1, 1, 80, 100)]
        )

        tier = result.tiers[0]
        self.assertEqual(_ids(tier.winners), ["a", "b", "c"])
        self.assertTrue(tier.over_cap)
        self.assertEqual(result.unassigned, ())

    def test_two_tiers_fill_in_display_order(self):
        participants = [_participant("a", 95), _participant("b", 85), _participant("c", 80)]
        tiers = [_tier("Tier B", 2, 2, 0, 89), _tier("Tier A", 1, 1, 90, 100)]
        result = compute_prize_assignments(participants, tiers)

        self.assertEqual([t.prize_level for t in result.tiers], ["Tier A", "Tier B"])
        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.tiers[1].winners), ["b", "c"])

    def test_unscored_participant_is_last_without_prize(self):
        participants = [
            _participant("unscored"),
            _participant("a", 70),
            _participant("b", 99),
        ]
        result = compute_prize_assignments(participants, [_tier("Winner", 1, 5)])

        self.assertEqual(_ids(result.participants), ["b", "a", "unscored"])
        self.assertIsNone(result.participants[-1].prize_level)
        self.assertEqual(_ids(result.no_score), ["unscored"])

    def test_no_tiers_gives_descending_ranking(self):
        participants = [_participant("a", 60), _participant("b", 80), _participant("c", 70)]
        result = compute_prize_assignments(participants, [])

        self.assertEqual(result.tiers, ())
        self.assertEqual(_ids(result.unassigned), ["b", "c", "a"])
        self.assertEqual(_ids(result.participants), ["b", "c", "a"])


class TestAllocationRules(unittest.TestCase):
    def test_mid_tier_tie_cascades_whole(self):
        participants = [
            _participant("a", 95),
            _participant("b", 88),
            _participant("c", 88),
            _participant("d", 70),
        ]
        tiers = [_tier("Gold", 1, 2), _tier("Silver", 2, 2)]
        result = compute_prize_assignments(participants, tiers)

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.tiers[1].winners), ["b", "c"])
        self.assertEqual(_ids(result.unassigned), ["d"])

    def test_tie_that_does_not_fit_stops_the_tier(self):
        # The 80-point participant fits under the cap but ranks below the
        # tied group, so it is not allowed to jump ahead of it.
        participants = [
            _participant("a", 95),
            _participant("b", 90),
            _participant("c", 90),
            _participant("d", 80),
        ]
        result = compute_prize_assignments(participants, [_tier("Gold", 1, 2)])

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.unassigned), ["b", "c", "d"])

    def test_bounds_are_inclusive_and_open_ended(self):
        participants = [_participant("a", 90.0), _participant("b", 89.9)]
        tiers = [_tier("Top", 1, 5, low=90), _tier("Rest", 2, 5, high=89.9)]
        result = compute_prize_assignments(participants, tiers)

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.tiers[1].winners), ["b"])

    def test_empty_tier_still_reported_with_default_range(self):
        result = compute_prize_assignments(
            [_participant("a", 50)], [_tier("Gold", 1, 1, low=90)]
        )

        tier = result.tiers[0]
        self.assertEqual(tier.winners, ())
        self.assertEqual((tier.score_range.min, tier.score_range.max), (90, 100.0))

    def test_winners_annotated_with_prize(self):
        result = compute_prize_assignments([_participant("a", 91)], [_tier("Gold", 3, 1)])

        winner = result.participants[0]
        self.assertEqual(winner.prize_level, "Gold")
        self.assertEqual(winner.prize_display_order, 3)

    def test_inputs_not_mutated(self):
        participants = [_participant("a", 91), _participant("b", 80)]
        snapshot = list(participants)
        compute_prize_assignments(participants, [_tier("Gold", 1, 1)])

        self.assertEqual(participants, snapshot)
        self.assertTrue(all(p.prize_level is None for p in participants))

    def test_equal_scores_keep_input_order(self):
        participants = [_participant("x", 80), _participant("y", 80), _participant("z", 80)]
        result = compute_prize_assignments(participants, [])

        self.assertEqual(_ids(result.unassigned), ["x", "y", "z"])

    def test_duplicate_display_order_warns_and_keeps_input_order(self):
        tiers = [_tier("First", 1, 1), _tier("Second", 1, 1)]
        participants = [_participant("a", 90), _participant("b", 80)]

        with self.assertLogs("pianojury.prize_assignment.allocator", level="WARNING"):
            result = compute_prize_assignments(participants, tiers)

        self.assertEqual([t.prize_level for t in result.tiers], ["First", "Second"])
        self.assertEqual(_ids(result.tiers[1].winners), ["b"])


class TestTiePrecision(unittest.TestCase):
    def test_tie_key_rounds_half_up(self):
        self.assertEqual(tie_key(88.25, 1), tie_key(88.3, 1))
        self.assertNotEqual(tie_key(88.24, 1), tie_key(88.25, 1))

    def test_tie_key_none_compares_raw(self):
        self.assertEqual(tie_key(88.25, None), 88.25)

    def test_rounded_averages_are_tied(self):
        # 88.333... and 88.3 display identically and share a prize
        participants = [_participant("a", 265 / 3), _participant("b", 88.3)]
        result = compute_prize_assignments(participants, [_tier("Gold", 1, 1)])

        self.assertEqual(_ids(result.tiers[0].winners), ["a", "b"])

    def test_exact_comparison_splits_close_averages(self):
        participants = [_participant("a", 265 / 3), _participant("b", 88.3)]
        result = compute_prize_assignments(
            participants, [_tier("Gold", 1, 1)], tie_precision=None
        )

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.unassigned), ["b"])

    def test_rounded_tie_at_tier_bound_stays_together(self):
        # Both average 90.0 at one decimal: (90 + 90 + 90.1) / 3 and
        # (89.9 + 90 + 90) / 3.
        participants = [
            _participant("a", (90 + 90 + 90.1) / 3),
            _participant("b", (89.9 + 90 + 90) / 3),
        ]
        tiers = [_tier("Gold", 1, 1, low=90), _tier("Silver", 2, 1)]
        result = compute_prize_assignments(participants, tiers)

        self.assertEqual(_ids(result.tiers[0].winners), ["a", "b"])
        self.assertEqual(result.tiers[1].winners, ())
        self.assertEqual({p.prize_level for p in result.participants}, {"Gold"})

    def test_exact_comparison_checks_bounds_on_raw_average(self):
        participants = [
            _participant("a", (90 + 90 + 90.1) / 3),
            _participant("b", (89.9 + 90 + 90) / 3),
        ]
        tiers = [_tier("Gold", 1, 1, low=90), _tier("Silver", 2, 1)]
        result = compute_prize_assignments(participants, tiers, tie_precision=None)

        self.assertEqual(_ids(result.tiers[0].winners), ["a"])
        self.assertEqual(_ids(result.tiers[1].winners), ["b"])


class TestAllocatorState(unittest.TestCase):
    def test_remaining_reflects_claims(self):
        allocator = PrizeTierAllocator()
        allocator.allocate(
            [_participant("a", 95), _participant("b", 70), _participant("c")],
            [_tier("Gold", 1, 1)],
        )

        self.assertEqual(_ids(allocator.remaining()), ["b"])

    def test_allocator_is_reusable(self):
        allocator = PrizeTierAllocator()
        tiers = [_tier("Gold", 1, 1)]
        first = allocator.allocate([_participant("a", 95)], tiers)
        second = allocator.allocate([_participant("b", 85)], tiers)

        self.assertEqual(_ids(first.winners), ["a"])
        self.assertEqual(_ids(second.winners), ["b"])


class TestInvariants(unittest.TestCase):
    """Properties that must hold for arbitrary inputs."""

    def _random_case(self, rng: random.Random):
        participants = []
        for index in range(rng.randint(0, 12)):
            if rng.random() < 0.2:
                participants.append(_participant(f"p{index}"))
            else:
                score = rng.choice([70.0, 75.5, 80.0, 85.0, 90.0, 95.0])
                participants.append(_participant(f"p{index}", score))
        tiers = []
        for order in range(rng.randint(0, 4)):
            low = rng.choice([None, 70, 80, 90])
            high = rng.choice([None, 89.9, 100])
            tiers.append(_tier(f"T{order}", order, rng.randint(1, 3), low, high))
        return participants, tiers

    def test_properties_hold_for_random_inputs(self):
        rng = random.Random(1234)
        for _ in range(200):
            participants, tiers = self._random_case(rng)
            result = compute_prize_assignments(participants, tiers)

            with self.subTest(participants=participants, tiers=tiers):
                self.assertEqual(result, compute_prize_assignments(participants, tiers))
                self.assertEqual(len(result.tiers), len(tiers))
                self.assertEqual(
                    len(result.winners) + len(result.unassigned) + len(result.no_score),
                    len(participants),
                )
                winner_ids = _ids(result.winners)
                self.assertEqual(len(winner_ids), len(set(winner_ids)))
                self.assertEqual(sorted(_ids(result.participants)), sorted(_ids(participants)))

                for tier in result.tiers:
                    scores = [w.average_score for w in tier.winners]
                    self.assertEqual(scores, sorted(scores, reverse=True))
                    if tier.over_cap:
                        self.assertEqual(len({tie_key(s) for s in scores}), 1)

                for participant in result.no_score:
                    self.assertIsNone(participant.prize_level)
                    self.assertNotIn(participant.id, winner_ids)


if __name__ == "__main__":
    unittest.main()
