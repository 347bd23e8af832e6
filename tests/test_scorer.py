"""Tests for the scoring engine."""

import itertools
import random

import pytest

from lead_router.errors import SchemaValidationError
from lead_router.routing import ReasonType, route_lead, score_agent
from lead_router.routing.scorer import capacity_score, round_half_up
from lead_router.schemas import AgentSnapshot, RoutingConfig


def make_agent(user_id="agent-a", **overrides):
    agent = {
        "userId": user_id,
        "fullName": f"Agent {user_id[-1].upper()}",
        "capacityTarget": 8,
        "activePipeline": 2,
        "geographyFit": 0.9,
        "priceBandFit": 0.8,
        "keptApptRate": 0.7,
        "consentReady": True,
        "tenDlcReady": True,
    }
    agent.update(overrides)
    return agent


# Only the kept-appointment rate counts, so score == keptApptRate
PERFORMANCE_ONLY = {
    "performanceWeight": 1.0,
    "capacityWeight": 0.0,
    "geographyWeight": 0.0,
    "priceBandWeight": 0.0,
}


class TestScoreAgent:
    """Tests for score_agent."""

    def test_worked_example(self):
        """Default weights give the documented score and reasons."""
        result = score_agent(make_agent())
        assert result.score == 0.7775
        assert result.user_id == "agent-a"
        assert [reason.type for reason in result.reasons] == [
            ReasonType.CAPACITY,
            ReasonType.PERFORMANCE,
            ReasonType.GEOGRAPHY,
            ReasonType.PRICE_BAND,
        ]
        assert [reason.description for reason in result.reasons] == [
            "Capacity remaining 75%",
            "Kept appointment rate 70%",
            "Geography fit 90%",
            "Price-band fit 80%",
        ]
        assert [reason.weight for reason in result.reasons] == [0.35, 0.25, 0.2, 0.2]

    def test_weaker_agent(self):
        result = score_agent(make_agent(
            "agent-b", activePipeline=7, keptApptRate=0.4, geographyFit=0.5, priceBandFit=0.4,
        ))
        assert result.score == pytest.approx(0.32375, abs=1e-4)
        assert result.reasons[0].description == "Capacity remaining 13%"

    def test_accepts_snapshot_model(self):
        snapshot = AgentSnapshot.model_validate(make_agent())
        assert score_agent(snapshot, RoutingConfig()).score == 0.7775

    def test_accepts_snake_case_keys(self):
        agent = {
            "user_id": "agent-a",
            "full_name": "Agent A",
            "capacity_target": 8,
            "active_pipeline": 2,
            "geography_fit": 0.9,
            "price_band_fit": 0.8,
            "kept_appt_rate": 0.7,
            "consent_ready": True,
            "ten_dlc_ready": True,
        }
        assert score_agent(agent).score == 0.7775

    @pytest.mark.parametrize("consent_ready,ten_dlc_ready", [
        (False, True),
        (True, False),
        (False, False),
    ])
    def test_gated_agent_is_ineligible(self, consent_ready, ten_dlc_ready):
        """A closed messaging gate beats any fit."""
        agent = make_agent(
            activePipeline=0, geographyFit=1.0, priceBandFit=1.0, keptApptRate=1.0,
            consentReady=consent_ready, tenDlcReady=ten_dlc_ready,
        )
        assert score_agent(agent) is None

    def test_gate_holds_for_any_factors(self):
        rng = random.Random(7)
        for _ in range(200):
            agent = make_agent(
                capacityTarget=rng.uniform(-5, 20),
                activePipeline=rng.uniform(-5, 20),
                geographyFit=rng.uniform(-1, 2),
                priceBandFit=rng.uniform(-1, 2),
                keptApptRate=rng.uniform(-1, 2),
                consentReady=rng.random() < 0.5,
                tenDlcReady=False,
            )
            assert score_agent(agent) is None

    def test_score_bounded_by_total_weight(self):
        """Out-of-range factors are clamped before weighting."""
        config = RoutingConfig(performance_weight=0.5, capacity_weight=1.5)
        values = [-2.0, -0.1, 0.0, 0.3, 1.0, 1.7, 40.0]
        for geography, price, kept in itertools.product(values, repeat=3):
            agent = make_agent(geographyFit=geography, priceBandFit=price, keptApptRate=kept)
            result = score_agent(agent, config)
            assert 0 <= result.score <= config.total_weight

    def test_clamped_reasons(self):
        result = score_agent(make_agent(geographyFit=1.7, keptApptRate=-0.3))
        assert result.reasons[1].description == "Kept appointment rate 0%"
        assert result.reasons[2].description == "Geography fit 100%"

    @pytest.mark.parametrize("target,pipeline,expected", [
        (0, 0, 0.0),
        (-3, 0, 0.0),
        (8, 10, 0.0),
        (8, 8, 0.0),
        (8, 0, 1.0),
        (4, 1, 0.75),
        (8, -4, 1.0),
    ])
    def test_capacity_score(self, target, pipeline, expected):
        assert capacity_score(target, pipeline) == expected

    def test_zero_capacity_scores_no_capacity(self):
        result = score_agent(make_agent(capacityTarget=0, activePipeline=0))
        assert result.reasons[0].description == "Capacity remaining 0%"
        assert result.score == pytest.approx(0.175 + 0.18 + 0.16, abs=1e-4)

    def test_rounds_half_up_to_four_places(self):
        result = score_agent(make_agent(keptApptRate=0.00015), PERFORMANCE_ONLY)
        assert result.score == 0.0002

    def test_weights_are_not_normalized(self):
        doubled = {
            "performanceWeight": 0.5,
            "capacityWeight": 0.7,
            "geographyWeight": 0.4,
            "priceBandWeight": 0.4,
        }
        assert score_agent(make_agent(), doubled).score == 1.555

    def test_score_to_dict(self):
        data = score_agent(make_agent()).to_dict()
        assert data["userId"] == "agent-a"
        assert data["fullName"] == "Agent A"
        assert data["reasons"][0] == {
            "type": "CAPACITY",
            "description": "Capacity remaining 75%",
            "weight": 0.35,
        }

    @pytest.mark.parametrize("overrides", [
        {"consentReady": "yes"},
        {"tenDlcReady": 1},
        {"keptApptRate": "0.7"},
        {"capacityTarget": None},
        {"geographyFit": float("nan")},
        {"roundRobinOrder": 1.5},
        {"nickname": "A"},
    ])
    def test_malformed_agent_raises(self, overrides):
        with pytest.raises(SchemaValidationError):
            score_agent(make_agent(**overrides))

    def test_missing_field_raises(self):
        agent = make_agent()
        del agent["priceBandFit"]
        with pytest.raises(SchemaValidationError) as exc_info:
            score_agent(agent)
        assert exc_info.value.model == "AgentSnapshot"

    @pytest.mark.parametrize("config", [
        {"capacityWeight": -0.1},
        {"performanceWeight": float("inf")},
        {"minimumScore": "high"},
        {"recencyWeight": 0.1},
    ])
    def test_malformed_config_raises(self, config):
        with pytest.raises(SchemaValidationError):
            score_agent(make_agent(), config)


class TestRoundHalfUp:
    """Tests for the score rounding helper."""

    def test_ties_round_up(self):
        assert round_half_up(0.00015) == 0.0002
        assert round_half_up(0.12345) == 0.1235
        assert round_half_up(2.5, 0) == 3.0

    def test_non_ties(self):
        assert round_half_up(0.77749) == 0.7775
        assert round_half_up(0.32374) == 0.3237


class TestRouteLead:
    """Tests for route_lead selection."""

    def make_input(self, agents, config=None, **overrides):
        payload = {
            "leadId": "lead-1",
            "tenantId": "tenant-1",
            "agents": agents,
            "fallbackTeamId": "team-pond",
        }
        if config is not None:
            payload["config"] = config
        payload.update(overrides)
        return payload

    def test_best_agent_selected(self):
        agents = [
            make_agent("agent-a"),
            make_agent("agent-b", activePipeline=7, keptApptRate=0.4, geographyFit=0.5, priceBandFit=0.4),
        ]
        result = route_lead(self.make_input(agents))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-a"]
        assert result.used_fallback is False
        assert result.fallback_team_id is None
        assert result.quiet_hours is False
        assert result.top_agent.score == 0.7775

    def test_fallback_when_nobody_reaches_minimum(self):
        """The best-scored agent is still reported when falling back."""
        agents = [make_agent(
            "agent-low", activePipeline=10, keptApptRate=0.2, geographyFit=0.2, priceBandFit=0.2,
        )]
        result = route_lead(self.make_input(agents, config={"minimumScore": 0.9}))
        assert result.used_fallback is True
        assert result.fallback_team_id == "team-pond"
        assert len(result.selected_agents) == 1
        assert result.selected_agents[0].user_id == "agent-low"
        assert result.selected_agents[0].score == pytest.approx(0.13, abs=1e-4)

    def test_all_gated_falls_back_with_no_agents(self):
        agents = [make_agent("agent-a", consentReady=False), make_agent("agent-b", tenDlcReady=False)]
        result = route_lead(self.make_input(agents))
        assert result.selected_agents == ()
        assert result.used_fallback is True
        assert result.fallback_team_id == "team-pond"

    def test_empty_roster(self):
        result = route_lead(self.make_input([]))
        assert result.selected_agents == ()
        assert result.used_fallback is True
        assert result.top_agent is None

    def test_fallback_without_team(self):
        result = route_lead(self.make_input([], fallbackTeamId=None))
        assert result.used_fallback is True
        assert result.fallback_team_id is None

    def test_selection_band(self):
        """Agents within 0.05 of the best score are selected together."""
        agents = [
            make_agent("agent-a", keptApptRate=0.90),
            make_agent("agent-b", keptApptRate=0.87),
            make_agent("agent-c", keptApptRate=0.85),
            make_agent("agent-d", keptApptRate=0.84),
            make_agent("agent-e", keptApptRate=0.50),
        ]
        result = route_lead(self.make_input(agents, config=PERFORMANCE_ONLY))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-a", "agent-b", "agent-c"]
        assert result.used_fallback is False

    def test_minimum_applies_inside_band(self):
        config = dict(PERFORMANCE_ONLY, minimumScore=0.62)
        agents = [make_agent("agent-a", keptApptRate=0.64), make_agent("agent-b", keptApptRate=0.61)]
        result = route_lead(self.make_input(agents, config=config))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-a"]

    def test_selected_sorted_by_score(self):
        agents = [
            make_agent("agent-a", keptApptRate=0.86),
            make_agent("agent-b", keptApptRate=0.90),
            make_agent("agent-c", keptApptRate=0.88),
        ]
        result = route_lead(self.make_input(agents, config=PERFORMANCE_ONLY))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-b", "agent-c", "agent-a"]

    def test_ties_keep_input_order(self):
        agents = [make_agent("agent-c"), make_agent("agent-a"), make_agent("agent-b")]
        result = route_lead(self.make_input(agents))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-c", "agent-a", "agent-b"]

    def test_gated_agents_never_selected(self):
        agents = [
            make_agent("agent-a", consentReady=False, activePipeline=0, keptApptRate=1.0),
            make_agent("agent-b"),
        ]
        result = route_lead(self.make_input(agents))
        assert [agent.user_id for agent in result.selected_agents] == ["agent-b"]

    def test_selection_properties_hold(self):
        rng = random.Random(11)
        for _ in range(100):
            agents = [
                make_agent(
                    f"agent-{index}",
                    activePipeline=rng.randint(0, 10),
                    keptApptRate=round(rng.random(), 2),
                    geographyFit=round(rng.random(), 2),
                    priceBandFit=round(rng.random(), 2),
                    consentReady=rng.random() < 0.8,
                )
                for index in range(rng.randint(0, 6))
            ]
            result = route_lead(self.make_input(agents))
            eligible = [score_agent(agent) for agent in agents if agent["consentReady"]]
            if result.used_fallback:
                assert len(result.selected_agents) <= 1
                continue
            best = max(score.score for score in eligible)
            scores = [agent.score for agent in result.selected_agents]
            assert scores == sorted(scores, reverse=True)
            assert scores[0] == best
            assert all(score >= 0.6 and best - score <= 0.05 + 1e-9 for score in scores)

    def test_quiet_hours_passed_through(self):
        result = route_lead(self.make_input([make_agent()], quietHours=True))
        assert result.quiet_hours is True
        assert result.used_fallback is False

    def test_to_dict(self):
        data = route_lead(self.make_input([make_agent()])).to_dict()
        assert data["leadId"] == "lead-1"
        assert data["tenantId"] == "tenant-1"
        assert data["usedFallback"] is False
        assert data["quietHours"] is False
        assert "fallbackTeamId" not in data
        assert data["selectedAgents"][0]["score"] == 0.7775

    def test_to_dict_includes_fallback_team(self):
        data = route_lead(self.make_input([])).to_dict()
        assert data["fallbackTeamId"] == "team-pond"
        assert data["selectedAgents"] == []

    @pytest.mark.parametrize("overrides", [
        {"leadId": None},
        {"agents": "agent-a"},
        {"quietHours": "no"},
        {"priority": 1},
    ])
    def test_malformed_input_raises(self, overrides):
        with pytest.raises(SchemaValidationError):
            route_lead(dict(self.make_input([make_agent()]), **overrides))

    def test_malformed_agent_raises(self):
        with pytest.raises(SchemaValidationError):
            route_lead(self.make_input([make_agent(consentReady="true")]))
