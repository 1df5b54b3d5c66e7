"""Tests for proposal assembly and mutation operations."""

import logging

import pytest

from proposal_engine.core.exceptions import (
    InvalidOverrideKeyError,
    InvalidStatusTransitionError,
    ServiceNotFoundError,
)
from proposal_engine.library import (
    SERVICE_LIBRARY_VERSION,
    TEMPLATE_VERSION,
    TERMS_VERSION,
    get_template,
)
from proposal_engine.models import (
    BlockSource,
    Branding,
    ClientBrief,
    CommentsPatch,
    CoverPatch,
    InvestmentOverride,
    ModuleInput,
    ProposalStatus,
)
from proposal_engine.services.assembler import (
    ITEMIZED_PLACEHOLDER,
    SIGNATURE_PLACEHOLDER,
    add_module,
    assemble_skeleton,
    remove_module,
    set_status,
    toggle_service_enabled,
    update_comments_block,
    update_cover_block,
    update_service_overrides,
)


class TestAssembleSkeleton:
    """Tests for assemble_skeleton."""

    def test_unknown_keys_are_dropped(self, sample_brief, fixed_now, caplog):
        with caplog.at_level(logging.WARNING):
            proposal = assemble_skeleton(
                "opp_001", sample_brief, ["marketing_machine", "bogus_key"], now=fixed_now
            )

        assert [s.service_key for s in proposal.services] == ["marketing_machine"]
        assert proposal.comments.paragraphs == []
        assert "bogus_key" in caplog.text

    def test_no_valid_services_still_assembles(self, sample_brief, fixed_now):
        proposal = assemble_skeleton("opp_001", sample_brief, ["nope"], now=fixed_now)
        assert proposal.services == []

    def test_services_keep_selection_order(self, sample_brief, fixed_now):
        keys = ["fractional_cmo", "seo_hosting", "marketing_machine"]
        proposal = assemble_skeleton("opp_001", sample_brief, keys, now=fixed_now)
        assert [s.service_key for s in proposal.services] == keys

    def test_service_blocks_are_enabled_template_copies(self, skeleton):
        block = skeleton.services[0]
        template = get_template("marketing_machine")

        assert block.enabled is True
        assert block.overrides == {}
        assert block.investment_override is None
        assert block.subsections == template.subsections
        assert block.investment == template.investment

    def test_identity_and_versions(self, skeleton, fixed_now):
        assert skeleton.id == "opp_001"
        assert skeleton.opportunity_id == "opp_001"
        assert skeleton.client_brief_id == "brief_123"
        assert skeleton.status == ProposalStatus.DRAFT
        assert skeleton.version.template_version == TEMPLATE_VERSION
        assert skeleton.version.service_library_version == SERVICE_LIBRARY_VERSION
        assert skeleton.version.terms_version == TERMS_VERSION
        assert skeleton.created_at == fixed_now
        assert skeleton.updated_at == fixed_now

    def test_cover_from_brief(self, skeleton):
        cover = skeleton.cover

        assert cover.proposal_title == "Marketing Proposal for Riverside Dental Group"
        assert cover.brand_name == "Good Circle Marketing"
        assert cover.prepared_by_name == "Kathryn"
        assert cover.prepared_by_title == "Marketing Lead"
        assert cover.quote_created_date == "2025-03-14"
        assert cover.for_client_name == "Maria Lopez"
        assert cover.for_client_org == "Riverside Dental Group"
        assert cover.for_client_email == "maria@riversidedental.com"

    def test_custom_title_is_used(self, sample_brief, fixed_now):
        proposal = assemble_skeleton(
            "opp_001", sample_brief, ["seo_hosting"],
            proposal_title="Search Visibility Plan", now=fixed_now
        )
        assert proposal.cover.proposal_title == "Search Visibility Plan"

    def test_cover_fallbacks(self, fixed_now):
        brief = ClientBrief(id="b1", client_name="Acme Roofing")

        proposal = assemble_skeleton("opp_002", brief, ["seo_hosting"], now=fixed_now)

        assert proposal.cover.for_client_name == "Acme Roofing"
        assert proposal.cover.for_client_org == "Acme Roofing"
        assert proposal.cover.for_client_email is None
        assert proposal.comments.greeting_line == "Hi Acme Roofing,"

    def test_blank_brief_uses_generic_placeholders(self, fixed_now):
        brief = ClientBrief(id="b2", client_name="  ")

        proposal = assemble_skeleton("opp_003", brief, ["seo_hosting"], now=fixed_now)

        assert proposal.cover.for_client_name == "Client"
        assert proposal.cover.for_client_org == "Organization"
        assert proposal.comments.greeting_line == "Hi there,"

    def test_business_name_backs_up_organization(self, fixed_now):
        brief = ClientBrief(id="b3", client_name="Sam", business_name="Sam's Bakery")
        proposal = assemble_skeleton("opp_004", brief, ["seo_hosting"], now=fixed_now)
        assert proposal.cover.for_client_org == "Sam's Bakery"

    def test_comments_skeleton(self, skeleton):
        assert skeleton.comments.heading == "Comments from Kathryn"
        assert skeleton.comments.greeting_line == "Hi Maria Lopez,"
        assert skeleton.comments.paragraphs == []
        assert skeleton.comments.signoff == "Kathryn"

    def test_branding_is_applied(self, sample_brief, fixed_now):
        branding = Branding(brand_name="Other Agency", prepared_by_name="Lee", prepared_by_title="Director")

        proposal = assemble_skeleton(
            "opp_001", sample_brief, ["seo_hosting"], branding=branding, now=fixed_now
        )

        assert proposal.cover.brand_name == "Other Agency"
        assert proposal.comments.heading == "Comments from Lee"
        assert proposal.comments.signoff == "Lee"

    def test_placeholders_reference_opportunity(self, skeleton):
        assert skeleton.itemized.source == BlockSource.PLACEHOLDER
        assert skeleton.itemized.placeholder_text == ITEMIZED_PLACEHOLDER
        assert skeleton.itemized.high_level.opportunity_id == "opp_001"
        assert skeleton.itemized.high_level.estimate_id is None
        assert skeleton.signatures.source == BlockSource.PLACEHOLDER
        assert skeleton.signatures.placeholder_text == SIGNATURE_PLACEHOLDER

    def test_terms_copied_in_full(self, skeleton):
        assert len(skeleton.terms.clauses) == 6
        assert skeleton.style_rules.forbid_em_dash is True

    def test_deterministic_apart_from_timestamps(self, sample_brief, fixed_now):
        keys = ["marketing_machine", "internal_comms"]
        first = assemble_skeleton("opp_001", sample_brief, keys, now=fixed_now)
        second = assemble_skeleton("opp_001", sample_brief, keys, now=fixed_now)

        assert first.model_dump_json() == second.model_dump_json()

    def test_timestamps_default_to_now(self, sample_brief, fixed_now):
        proposal = assemble_skeleton("opp_001", sample_brief, ["seo_hosting"])
        assert proposal.created_at > fixed_now
        assert proposal.created_at.tzinfo is not None

    def test_library_edits_do_not_leak(self, skeleton):
        skeleton.services[0].subsections[0].body_markdown = "edited"
        assert get_template("marketing_machine").subsections[0].body_markdown != "edited"


class TestCommentsAndCover:
    """Tests for update_comments_block and update_cover_block."""

    def test_comments_merge_only_given_fields(self, skeleton):
        updated = update_comments_block(skeleton, CommentsPatch(paragraphs=["One.", "Two."]))

        assert updated.comments.paragraphs == ["One.", "Two."]
        assert updated.comments.heading == skeleton.comments.heading
        assert updated.comments.signoff == skeleton.comments.signoff
        assert skeleton.comments.paragraphs == []

    def test_comments_bump_updated_at(self, skeleton, fixed_now):
        updated = update_comments_block(skeleton, CommentsPatch(signoff="Kat"))
        assert updated.updated_at > fixed_now

    def test_cover_merge(self, skeleton):
        updated = update_cover_block(skeleton, CoverPatch(proposal_title="New Title"))

        assert updated.cover.proposal_title == "New Title"
        assert updated.cover.for_client_org == skeleton.cover.for_client_org
        assert skeleton.cover.proposal_title != "New Title"

    def test_cover_explicit_null_clears_email(self, skeleton):
        assert skeleton.cover.for_client_email is not None

        updated = update_cover_block(skeleton, CoverPatch(for_client_email=None))

        assert updated.cover.for_client_email is None
        assert updated.cover.proposal_title == skeleton.cover.proposal_title

    def test_cover_unset_email_is_kept(self, skeleton):
        updated = update_cover_block(skeleton, CoverPatch(proposal_title="Other"))
        assert updated.cover.for_client_email == skeleton.cover.for_client_email

    def test_null_on_required_text_fields_is_ignored(self, skeleton):
        """Test None never lands on a field that must stay a string."""
        cover = update_cover_block(skeleton, CoverPatch(proposal_title=None))
        comments = update_comments_block(skeleton, CommentsPatch(heading=None, signoff="Kat"))

        assert cover.cover.proposal_title == skeleton.cover.proposal_title
        assert comments.comments.heading == skeleton.comments.heading
        assert comments.comments.signoff == "Kat"

    def test_patch_models_reject_unknown_fields(self):
        with pytest.raises(ValueError):
            CoverPatch(proposal_title="x", color="blue")
        with pytest.raises(ValueError):
            CommentsPatch(footer="x")


class TestServiceOverrides:
    """Tests for update_service_overrides."""

    def test_merges_new_and_replaces_existing(self, skeleton):
        first = update_service_overrides(skeleton, "marketing_machine", {"subsection_1": "A"})
        second = update_service_overrides(
            first, "marketing_machine", {"subsection_1": "B", "subsection_3": "C"}
        )

        assert second.services[0].overrides == {"subsection_1": "B", "subsection_3": "C"}

    def test_original_subsections_untouched(self, skeleton):
        original = skeleton.services[0].subsections[1].body_markdown

        updated = update_service_overrides(skeleton, "marketing_machine", {"subsection_2": "X"})

        assert updated.services[0].subsections[1].body_markdown == original

    def test_missing_service_raises_and_leaves_document_unchanged(self, skeleton):
        before = skeleton.model_dump()

        with pytest.raises(ServiceNotFoundError) as exc_info:
            update_service_overrides(skeleton, "seo_hosting", {"subsection_1": "X"})

        assert exc_info.value.service_key == "seo_hosting"
        assert skeleton.model_dump() == before

    def test_bad_override_key_rejected_before_any_change(self, skeleton):
        before = skeleton.model_dump()

        with pytest.raises(InvalidOverrideKeyError):
            update_service_overrides(
                skeleton, "marketing_machine", {"subsection_1": "ok", "intro": "bad"}
            )

        assert skeleton.model_dump() == before

    def test_investment_override(self, skeleton):
        updated = update_service_overrides(
            skeleton,
            "internal_comms",
            investment_override=InvestmentOverride(amount=2000, render_hint="$2,000 one-time investment"),
        )

        service = updated.find_service("internal_comms")
        resolved = service.resolve_investment()
        assert resolved.amount == 2000
        assert resolved.render_hint == "$2,000 one-time investment"
        assert resolved.notes == service.investment.notes
        assert service.investment.amount == 2500

    def test_order_is_preserved(self, skeleton):
        updated = update_service_overrides(skeleton, "internal_comms", {"subsection_1": "X"})
        assert [s.service_key for s in updated.services] == ["marketing_machine", "internal_comms"]


class TestToggleService:
    """Tests for toggle_service_enabled."""

    def test_disable_keeps_data_and_position(self, skeleton):
        with_override = update_service_overrides(skeleton, "marketing_machine", {"subsection_2": "X"})

        disabled = toggle_service_enabled(with_override, "marketing_machine", False)

        service = disabled.services[0]
        assert service.service_key == "marketing_machine"
        assert service.enabled is False
        assert service.overrides == {"subsection_2": "X"}
        assert service.subsections == with_override.services[0].subsections

    def test_re_enable(self, skeleton):
        disabled = toggle_service_enabled(skeleton, "internal_comms", False)
        enabled = toggle_service_enabled(disabled, "internal_comms", True)

        assert enabled.services[1].enabled is True
        assert enabled.services[1].model_dump() == skeleton.services[1].model_dump()

    def test_missing_service(self, skeleton):
        with pytest.raises(ServiceNotFoundError):
            toggle_service_enabled(skeleton, "fractional_cmo", False)


class TestModules:
    """Tests for add_module and remove_module."""

    def test_add_appends_enabled_module(self, skeleton):
        updated = add_module(skeleton, ModuleInput(
            module_key="past_clients",
            title_caps="PAST CLIENTS",
            body_markdown="- Acme\n- Globex",
        ))

        assert len(updated.modules) == 1
        assert updated.modules[0].enabled is True
        assert updated.modules[0].title_caps == "PAST CLIENTS"
        assert skeleton.modules == []

    def test_same_key_twice_gives_two_entries(self, skeleton):
        module = ModuleInput(module_key="past_clients", body_markdown="Acme")
        updated = add_module(add_module(skeleton, module), module)
        assert [m.module_key for m in updated.modules] == ["past_clients", "past_clients"]

    def test_remove_drops_all_matching(self, skeleton):
        proposal = skeleton
        for key in ["past_clients", "case_study", "past_clients"]:
            proposal = add_module(proposal, ModuleInput(module_key=key, body_markdown="x"))

        updated = remove_module(proposal, "past_clients")

        assert [m.module_key for m in updated.modules] == ["case_study"]

    def test_module_input_requires_key_and_body(self):
        with pytest.raises(ValueError):
            ModuleInput(module_key="", body_markdown="x")
        with pytest.raises(ValueError):
            ModuleInput(module_key="k", body_markdown="")


class TestSetStatus:
    """Tests for the forward-only status lifecycle."""

    def test_forward_transitions(self, skeleton):
        complete = set_status(skeleton, ProposalStatus.COMPLETE)
        sent = set_status(complete, ProposalStatus.SENT)

        assert complete.status == ProposalStatus.COMPLETE
        assert sent.status == ProposalStatus.SENT
        assert skeleton.status == ProposalStatus.DRAFT

    def test_backward_transition_refused(self, skeleton):
        sent = set_status(set_status(skeleton, ProposalStatus.COMPLETE), ProposalStatus.SENT)
        with pytest.raises(InvalidStatusTransitionError):
            set_status(sent, ProposalStatus.DRAFT)

    def test_skipping_complete_refused(self, skeleton):
        """Test draft cannot jump straight to sent."""
        with pytest.raises(InvalidStatusTransitionError):
            set_status(skeleton, ProposalStatus.SENT)

    def test_same_status_refused(self, skeleton):
        with pytest.raises(InvalidStatusTransitionError):
            set_status(skeleton, ProposalStatus.DRAFT)
