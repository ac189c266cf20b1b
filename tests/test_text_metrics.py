"""
Tests for numeric evidence extraction from abstracts.
"""

from bioevidence.openqa.text_metrics import annotate_publications, extract_metrics
from bioevidence.schemas import Publication, Trial

MOCK_ABSTRACT = (
    "Patients with MGMT promoter methylation above a 10% methylation cutoff benefited from "
    "temozolomide. Median overall survival was 21.7 months versus 15.3 months "
    "(HR 0.69 (95% CI 0.56-0.85)). Median progression-free survival of 10 weeks was observed."
)


class TestExtractMetrics:
    def test_full_abstract(self):
        metrics = extract_metrics(MOCK_ABSTRACT)

        assert metrics["cutoffs"] == [{"value": 10.0, "units": "%", "context": "cutoff/threshold"}]
        assert metrics["hr"] == [{"endpoint": "OS_or_PFS", "value": 0.69, "ci": "0.56-0.85"}]
        assert {"endpoint": "OS", "value": 21.7, "units": "months"} in metrics["medians"]
        assert {"endpoint": "PFS", "value": 10.0, "units": "weeks"} in metrics["medians"]

    def test_hazard_ratio_without_ci(self):
        metrics = extract_metrics("The hazard ratio = 1.25 for death.")
        assert metrics["hr"] == [{"endpoint": "OS_or_PFS", "value": 1.25}]

    def test_days_unit(self):
        metrics = extract_metrics("Overall survival: 300 days in the control arm.")
        assert metrics["medians"] == [{"endpoint": "OS", "value": 300.0, "units": "days"}]

    def test_percent_without_cutoff_context_is_ignored(self):
        assert extract_metrics("Response was seen in 45% of patients.")["cutoffs"] == []

    def test_odds_ratio_fallback(self):
        metrics = extract_metrics("Odds ratio 2.1 (95% CI 1.2-3.4) and RR: 1.4.")
        assert [h["value"] for h in metrics["hr"]] == [2.1, 1.4]
        assert all(h["endpoint"] == "unknown" for h in metrics["hr"])

    def test_odds_ratio_ignored_when_hr_present(self):
        metrics = extract_metrics("HR 0.8; OR 2.0")
        assert metrics["hr"] == [{"endpoint": "OS_or_PFS", "value": 0.8}]

    def test_lowercase_or_is_not_an_odds_ratio(self):
        assert extract_metrics("either or 3 groups")["hr"] == []

    def test_empty(self):
        assert extract_metrics(None) == {"cutoffs": [], "hr": [], "medians": []}


class TestAnnotate:
    def test_annotates_publications_only(self):
        pub = Publication(title="Trial", abstract=MOCK_ABSTRACT)
        trial = Trial(nct_id="NCT00000001")

        annotate_publications([pub, trial])

        assert pub.meta["extracted"]["hr"][0]["value"] == 0.69
        assert "extracted" not in trial.meta
