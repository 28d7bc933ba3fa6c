import pytest
from lead_scorer.config import DEFAULT_RULES, save_rules
from lead_scorer.models import Lead, Offer
from lead_scorer.scoring import combine_reasoning, compute_rule_score, score_rules


def _offer(*use_cases):
    return Offer(name="X", value_props=["fast"], ideal_use_cases=list(use_cases))


def test_vp_with_substring_industry_scores_fifty(lead_data):
    lead = Lead(**lead_data(role="VP of Sales", industry="B2B SaaS"))
    score, reasons = compute_rule_score(lead, _offer("B2B SaaS mid-market"), DEFAULT_RULES)
    assert score == 50
    assert reasons == ["Decision maker role (+20)", "Exact industry match (+20)", "Complete data (+10)"]


@pytest.mark.parametrize("role", ["Director of Engineering", "DIRECTOR", "Sales director EMEA"])
def test_director_roles_score_at_least_twenty(lead_data, role):
    lead = Lead(**lead_data(role=role, industry="Healthcare"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score >= 20
    assert "Decision maker role (+20)" in reasons


def test_decision_maker_wins_over_influencer(lead_data):
    lead = Lead(**lead_data(role="Senior Director, Lead Architect", industry="Healthcare"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 30
    assert "Influencer role (+10)" not in reasons


def test_influencer_role(lead_data):
    lead = Lead(**lead_data(role="Marketing Manager", industry="Healthcare"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 20
    assert reasons[0] == "Influencer role (+10)"


def test_role_match_is_plain_substring(lead_data):
    # "gm" is a decision-maker keyword and "Segment" contains it
    lead = Lead(**lead_data(role="Segment Engineer", industry="Healthcare"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 30
    assert reasons[0] == "Decision maker role (+20)"


def test_unmatched_role_adds_nothing(lead_data):
    lead = Lead(**lead_data(role="Engineer", industry="Healthcare"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 10
    assert reasons == ["Complete data (+10)"]


def test_use_case_inside_industry_is_exact_match(lead_data):
    lead = Lead(**lead_data(role="Engineer", industry="Healthcare Logistics"))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert "Exact industry match (+20)" in reasons
    assert score == 30


def test_industry_match_ignores_case(lead_data):
    lead = Lead(**lead_data(role="Engineer", industry="b2b saas"))
    score, _ = compute_rule_score(lead, _offer("Retail", "B2B SAAS Mid-Market"), DEFAULT_RULES)
    assert score == 30


@pytest.mark.parametrize("industry,use_case", [
    ("Enterprise Software", "Software companies"),
    ("Fintech", "Tech startups"),
    ("SaaS Platforms", "Vertical saas vendors"),
])
def test_adjacent_industry(lead_data, industry, use_case):
    lead = Lead(**lead_data(role="Engineer", industry=industry))
    score, reasons = compute_rule_score(lead, _offer(use_case), DEFAULT_RULES)
    assert "Adjacent industry (+10)" in reasons
    assert score == 20


def test_adjacent_needs_same_keyword_on_both_sides(lead_data):
    lead = Lead(**lead_data(role="Engineer", industry="Software"))
    score, reasons = compute_rule_score(lead, _offer("B2B services"), DEFAULT_RULES)
    assert score == 10
    assert "Adjacent industry (+10)" not in reasons


def test_incomplete_lead_skips_completeness_bonus(lead_data):
    lead = Lead.model_construct(**lead_data(role="CEO", industry="Healthcare", linkedin_bio=""))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 20
    assert "Complete data (+10)" not in reasons


def test_empty_industry_is_not_an_exact_match(lead_data):
    lead = Lead.model_construct(**lead_data(role="Engineer", industry=""))
    score, reasons = compute_rule_score(lead, _offer("Logistics"), DEFAULT_RULES)
    assert score == 0
    assert reasons == []


def test_rule_score_is_sum_of_clause_bonuses(lead_data):
    roles = ["CEO", "Analyst", "Engineer"]
    industries = ["Logistics", "Software", "Healthcare"]
    offer = _offer("Logistics", "Software vendors")
    for role in roles:
        for industry in industries:
            for bio in ["Bio", ""]:
                lead = Lead.model_construct(**lead_data(role=role, industry=industry, linkedin_bio=bio))
                score, _ = compute_rule_score(lead, offer, DEFAULT_RULES)
                assert 0 <= score <= 50
                assert score % 10 == 0


def test_score_rules_uses_configured_keywords(lead_data):
    rules = dict(DEFAULT_RULES)
    rules["influencer_roles"] = DEFAULT_RULES["influencer_roles"] + ["Evangelist"]
    save_rules(rules)
    lead = Lead(**lead_data(role="Developer Evangelist", industry="Healthcare"))
    score, reasons = score_rules(lead, _offer("Logistics"))
    assert score == 20
    assert reasons[0] == "Influencer role (+10)"


def test_combine_reasoning():
    assert combine_reasoning(["Decision maker role (+20)", "Complete data (+10)"], "Strong fit.") == (
        "Rules: Decision maker role (+20), Complete data (+10). AI: Strong fit."
    )
    assert combine_reasoning([], "Weak fit.") == "AI: Weak fit."
