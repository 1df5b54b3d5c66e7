"""Tests for the proposal linter and validator."""

import logging

import pytest

from proposal_engine.models import (
    CommentsBlock,
    InvestmentOverride,
    ModuleBlock,
    Proposal,
    StyleRules,
)
from proposal_engine.services.linter import (
    clean_text,
    contains_dash_artifact,
    lint_comments,
    lint_proposal,
    validate_proposal,
)

EM_DASH = chr(0x2014)
EN_DASH = chr(0x2013)


class TestCleanText:
    """Tests for clean_text normalization."""

    def test_em_dash_becomes_hyphen(self):
        """An em dash between words is replaced by a plain hyphen."""
        assert clean_text(f"growth{EM_DASH}fast") == "growth-fast"

    def test_en_dash_becomes_hyphen(self):
        assert clean_text(f"2024{EN_DASH}2025") == "2024-2025"

    def test_no_dash_characters_survive(self):
        result = clean_text(f"a {EM_DASH} b {EN_DASH} c{EM_DASH}{EN_DASH}d")
        assert EM_DASH not in result
        assert EN_DASH not in result
        assert "-" in result

    def test_three_or_more_newlines_collapse_to_two(self):
        assert clean_text("one\n\n\n\ntwo\n\n\nthree") == "one\n\ntwo\n\nthree"

    def test_two_newlines_are_kept(self):
        assert clean_text("one\n\ntwo") == "one\n\ntwo"

    def test_spaces_and_tabs_collapse(self):
        assert clean_text("too   many\t\tgaps \t here") == "too many gaps here"

    def test_trims_ends(self):
        assert clean_text("   padded text \n") == "padded text"

    def test_empty_and_none_pass_through(self):
        assert clean_text("") == ""
        assert clean_text(None) is None

    def test_idempotent(self):
        once = clean_text(f"  a{EM_DASH}b\n\n\n\nc   d ")
        assert clean_text(once) == once


class TestContainsDashArtifact:
    """Tests for contains_dash_artifact."""

    def test_detects_em_and_en_dash(self):
        assert contains_dash_artifact(f"x{EM_DASH}y")
        assert contains_dash_artifact(f"x{EN_DASH}y")

    def test_plain_hyphen_is_fine(self):
        assert not contains_dash_artifact("x-y")
        assert not contains_dash_artifact("")
        assert not contains_dash_artifact(None)


class TestLintComments:
    """Tests for lint_comments."""

    def test_signoff_leading_hyphen_is_stripped(self):
        """A '- Kathryn' signoff left behind by dash cleanup becomes 'Kathryn'."""
        comments = CommentsBlock(
            heading="Comments from Kathryn",
            greeting_line="Hi Maria,",
            paragraphs=["One.", "Two."],
            signoff="- Kathryn",
        )
        assert lint_comments(comments).signoff == "Kathryn"

    def test_em_dash_signoff_is_stripped(self):
        comments = CommentsBlock(signoff=f"{EM_DASH} Kathryn", paragraphs=["a", "b"])
        assert lint_comments(comments).signoff == "Kathryn"

    def test_truncates_to_five_paragraphs(self, caplog):
        comments = CommentsBlock(paragraphs=[f"Paragraph {i}" for i in range(1, 9)])

        with caplog.at_level(logging.WARNING):
            result = lint_comments(comments)

        assert result.paragraphs == [f"Paragraph {i}" for i in range(1, 6)]
        assert "truncating" in caplog.text

    def test_empty_paragraphs_are_removed(self):
        comments = CommentsBlock(paragraphs=["First.", "   ", "", "\n\t", "Second."])
        assert lint_comments(comments).paragraphs == ["First.", "Second."]

    def test_never_more_than_five_and_never_empty(self):
        comments = CommentsBlock(paragraphs=["", "a", " ", "b", "c", "d", "e", "f", "g"])
        result = lint_comments(comments)
        assert len(result.paragraphs) <= 5
        assert all(p.strip() for p in result.paragraphs)

    def test_every_field_is_cleaned(self):
        comments = CommentsBlock(
            heading=f"  Comments{EM_DASH}Kathryn ",
            greeting_line="Hi   Maria,",
            paragraphs=[f"We{EN_DASH}you"],
            signoff="Kathryn",
        )
        result = lint_comments(comments)
        assert result.heading == "Comments-Kathryn"
        assert result.greeting_line == "Hi Maria,"
        assert result.paragraphs == ["We-you"]

    def test_injected_logger_receives_warnings(self):
        log = logging.getLogger("tests.linter.injected")
        records = []

        class Collector(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = Collector()
        log.addHandler(handler)
        try:
            lint_comments(CommentsBlock(paragraphs=[str(i) for i in range(7)]), log=log)
        finally:
            log.removeHandler(handler)

        assert any("truncating" in r.getMessage() for r in records)


class TestLintProposal:
    """Tests for lint_proposal."""

    def test_cleans_every_block(self, complete_proposal, fixed_now):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.cover.proposal_title = f"Plan{EM_DASH}2025"
        proposal.comments.paragraphs.append(f"Extra{EN_DASH}paragraph")
        proposal.services[0].subsections[0].body_markdown = f"- item{EM_DASH}one"
        proposal.services[0].overrides = {"subsection_2": f"Custom{EM_DASH}text"}
        proposal.services[0].investment_override = InvestmentOverride(
            render_hint=f"$5,000{EM_DASH}one time"
        )
        proposal.modules.append(ModuleBlock(
            module_key="past_clients",
            title_caps=f"PAST{EM_DASH}CLIENTS",
            body_markdown=f"Acme{EN_DASH}Co",
        ))
        proposal.terms.clauses[0].body = f"Terms{EM_DASH}apply"

        linted = lint_proposal(proposal, now=fixed_now)

        assert linted.cover.proposal_title == "Plan-2025"
        assert linted.comments.paragraphs[-1] == "Extra-paragraph"
        assert linted.services[0].subsections[0].body_markdown == "- item-one"
        assert linted.services[0].overrides["subsection_2"] == "Custom-text"
        assert linted.services[0].investment_override.render_hint == "$5,000-one time"
        assert linted.modules[0].title_caps == "PAST-CLIENTS"
        assert linted.modules[0].body_markdown == "Acme-Co"
        assert linted.terms.clauses[0].body == "Terms-apply"
        assert validate_proposal(linted).valid

    def test_does_not_mutate_input(self, complete_proposal, fixed_now):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.cover.proposal_title = f"Plan{EM_DASH}2025"
        before = proposal.model_dump()

        lint_proposal(proposal, now=fixed_now)

        assert proposal.model_dump() == before

    def test_stamps_updated_at(self, complete_proposal, fixed_now):
        linted = lint_proposal(complete_proposal, now=fixed_now)
        assert linted.updated_at == fixed_now
        assert linted.created_at == complete_proposal.created_at

    def test_idempotent(self, complete_proposal, fixed_now):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.comments.paragraphs = [f"a{EM_DASH}b", "  ", "c\n\n\n\nd"] + ["x"] * 6
        proposal.cover.for_client_name = "  Maria   Lopez "

        once = lint_proposal(proposal, now=fixed_now)
        twice = lint_proposal(once, now=fixed_now)

        assert twice == once


class TestValidateProposal:
    """Tests for validate_proposal."""

    def test_complete_proposal_is_valid(self, complete_proposal):
        result = validate_proposal(complete_proposal)
        assert result.valid
        assert result.errors == []

    def test_fresh_skeleton_needs_paragraphs(self, skeleton):
        """Assembly leaves paragraphs empty, so a skeleton never validates."""
        result = validate_proposal(skeleton)

        assert not result.valid
        assert "Comments should have at least 2 paragraphs" in result.errors

    def test_reports_all_problems_at_once(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.cover.for_client_org = ""
        proposal.comments.paragraphs = ["Only one."]
        for service in proposal.services:
            service.enabled = False

        result = validate_proposal(proposal)

        assert not result.valid
        assert "Missing client organization" in result.errors
        assert "Comments should have at least 2 paragraphs" in result.errors
        assert "At least one service must be enabled" in result.errors
        assert len(set(result.errors)) >= 3

    def test_identity_fields(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.opportunity_id = ""
        proposal.client_brief_id = ""

        errors = validate_proposal(proposal).errors

        assert "Missing opportunity ID" in errors
        assert "Missing client brief ID" in errors

    def test_no_services_at_all(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.services = []

        errors = validate_proposal(proposal).errors

        assert "No services selected" in errors
        assert "At least one service must be enabled" in errors

    def test_missing_terms_clauses(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.terms.clauses = []
        assert "Missing terms clauses" in validate_proposal(proposal).errors

    def test_dash_anywhere_in_document_is_reported(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.services[1].timeline = f"Four{EN_DASH}six weeks"

        errors = validate_proposal(proposal).errors

        assert "Em dashes found in proposal content" in errors

    def test_never_mutates(self, complete_proposal):
        proposal = complete_proposal.model_copy(deep=True)
        proposal.comments.paragraphs = []
        before = proposal.model_dump()

        validate_proposal(proposal)

        assert proposal.model_dump() == before

    def test_dash_check_cannot_be_switched_off(self, complete_proposal):
        """Test a document claiming forbid_em_dash=False is still checked."""
        proposal = complete_proposal.model_copy(deep=True)
        proposal.style_rules = proposal.style_rules.model_copy(update={"forbid_em_dash": False})
        proposal.comments.paragraphs[0] = f"Fast{EM_DASH}friendly"

        errors = validate_proposal(proposal).errors

        assert "Em dashes found in proposal content" in errors


class TestStyleRules:
    def test_forbid_em_dash_is_pinned(self):
        with pytest.raises(ValueError):
            StyleRules(forbid_em_dash=False)
        assert StyleRules().forbid_em_dash is True

    def test_stored_document_with_dashes_allowed_is_rejected(self, complete_proposal):
        document = complete_proposal.model_dump(mode="json")
        document["style_rules"]["forbid_em_dash"] = False

        with pytest.raises(ValueError):
            Proposal.model_validate(document)
