"""Tests for the wizard controller transitions."""

import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from config import settings
from models.schemas.fit_analysis import FitAnalysis
from models.schemas.resume_draft import CritiqueLevel, ResumeDraft
from models.schemas.wizard_state import WizardState, WizardStep
from services import wizard
from services.file_ingest import UploadError
from services.gemini_client import GenerationError, SchemaValidationError
from services.prompt_builder import SYSTEM_PROMPT_BASE
from services.wizard import WizardStateError

RAW_INPUT = "Built a checkout flow, used React, cut load time 30%"
EXPERIENCE_DOC = "Frontend Engineer\n- Built checkout flow (React)\n- Reduced load time by 30%"
JOB_DESCRIPTION = "Senior Frontend Engineer. React, performance, accessibility."


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text)


def _fit_input_state() -> WizardState:
    return WizardState(
        step=WizardStep.FIT_INPUT,
        raw_input=RAW_INPUT,
        experience_document=EXPERIENCE_DOC,
        job_description=JOB_DESCRIPTION,
    )


def _draft_state(draft_payload: dict, fit_payload: dict) -> WizardState:
    return _fit_input_state().model_copy(update={
        "step": WizardStep.DRAFT,
        "fit_analysis": FitAnalysis.model_validate(fit_payload),
        "resume_draft": ResumeDraft.model_validate(draft_payload),
    })


class TestExtractExperience:
    @pytest.mark.asyncio
    async def test_advances_one_step_with_document(self, gemini):
        gemini.return_value = _reply("MOCK EXPERIENCE DOCUMENT")
        state = WizardState(raw_input=RAW_INPUT)

        result = await wizard.extract_experience(state)

        assert result.step == WizardStep.FIT_INPUT
        assert result.experience_document == "MOCK EXPERIENCE DOCUMENT"
        assert result.job_description == ""
        assert result.fit_analysis is None
        assert result.resume_draft is None
        assert result.final_resume == ""
        assert gemini.await_count == 1

    @pytest.mark.asyncio
    async def test_uses_fast_model_and_system_instruction(self, gemini):
        gemini.return_value = _reply("doc")
        await wizard.extract_experience(WizardState(raw_input=RAW_INPUT, language="zh"))

        kwargs = gemini.await_args.kwargs
        assert kwargs["model"] == settings.fast_model
        assert RAW_INPUT in kwargs["contents"]
        assert "Chinese" in kwargs["contents"]
        assert kwargs["config"].system_instruction == SYSTEM_PROMPT_BASE

    @pytest.mark.asyncio
    async def test_blank_input_is_noop(self, gemini):
        state = WizardState(raw_input="   \n ")
        result = await wizard.extract_experience(state)
        assert result is state
        gemini.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_leaves_state_untouched(self, gemini):
        gemini.side_effect = RuntimeError("503 UNAVAILABLE")
        state = WizardState(raw_input=RAW_INPUT)

        with pytest.raises(GenerationError):
            await wizard.extract_experience(state)
        assert state.step == WizardStep.BRAINSTORM
        assert state.experience_document == ""
        assert state.raw_input == RAW_INPUT

    @pytest.mark.asyncio
    async def test_empty_model_reply_is_an_error(self, gemini):
        gemini.return_value = _reply("")
        with pytest.raises(GenerationError):
            await wizard.extract_experience(WizardState(raw_input=RAW_INPUT))

    @pytest.mark.asyncio
    async def test_wrong_step(self, gemini):
        with pytest.raises(WizardStateError):
            await wizard.extract_experience(_fit_input_state())
        gemini.assert_not_awaited()


class TestComputeFit:
    @pytest.mark.asyncio
    async def test_success(self, gemini, fit_json):
        gemini.return_value = _reply(fit_json)

        result = await wizard.compute_fit(_fit_input_state())

        assert result.step == WizardStep.FIT_RESULT
        assert result.fit_analysis.score == 82
        assert result.fit_analysis.dna_comparison[0].jd == "Frontend performance ownership"
        assert result.fit_analysis.conclusion_kind == "go"
        config = gemini.await_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert gemini.await_args.kwargs["model"] == settings.pro_model

    @pytest.mark.asyncio
    async def test_missing_field_is_rejected(self, gemini, fit_payload):
        del fit_payload["cons"]
        gemini.return_value = _reply(json.dumps(fit_payload))
        state = _fit_input_state()

        with pytest.raises(SchemaValidationError):
            await wizard.compute_fit(state)
        assert state.step == WizardStep.FIT_INPUT
        assert state.fit_analysis is None

    @pytest.mark.asyncio
    async def test_unparseable_reply_is_rejected(self, gemini):
        gemini.return_value = _reply("Sure! Here is your analysis: great fit.")
        with pytest.raises(SchemaValidationError):
            await wizard.compute_fit(_fit_input_state())

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_rejected(self, gemini, fit_payload):
        fit_payload["score"] = 140
        gemini.return_value = _reply(json.dumps(fit_payload))
        with pytest.raises(SchemaValidationError):
            await wizard.compute_fit(_fit_input_state())

    @pytest.mark.asyncio
    async def test_fenced_json_is_accepted(self, gemini, fit_json):
        gemini.return_value = _reply(f"```json\n{fit_json}\n```")
        result = await wizard.compute_fit(_fit_input_state())
        assert result.fit_analysis.score == 82

    @pytest.mark.asyncio
    async def test_blank_job_description_is_noop(self, gemini):
        state = _fit_input_state().model_copy(update={"job_description": "  "})
        result = await wizard.compute_fit(state)
        assert result is state
        gemini.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_experience_document(self, gemini):
        state = _fit_input_state().model_copy(update={"experience_document": ""})
        with pytest.raises(WizardStateError):
            await wizard.compute_fit(state)


class TestDraftResume:
    @pytest.mark.asyncio
    async def test_success(self, gemini, fit_json, draft_json):
        gemini.return_value = _reply(fit_json)
        state = await wizard.compute_fit(_fit_input_state())
        gemini.return_value = _reply(draft_json)

        result = await wizard.draft_resume(state)

        assert result.step == WizardStep.DRAFT
        assert result.resume_draft.resume_markdown.startswith("# Jane Doe")
        assert len(result.resume_draft.critiques) == 5
        assert result.resume_draft.critiques[0].level is CritiqueLevel.FATAL
        assert JOB_DESCRIPTION in gemini.await_args.kwargs["contents"]

    @pytest.mark.asyncio
    async def test_wrong_critique_count_is_rejected(self, gemini, draft_payload):
        draft_payload["critiques"] = draft_payload["critiques"][:3]
        gemini.return_value = _reply(json.dumps(draft_payload))
        state = _fit_input_state().model_copy(update={"step": WizardStep.FIT_RESULT})

        with pytest.raises(SchemaValidationError):
            await wizard.draft_resume(state)

    @pytest.mark.asyncio
    async def test_unknown_severity_is_rejected(self, gemini, draft_payload):
        draft_payload["critiques"][0]["level"] = "catastrophic"
        gemini.return_value = _reply(json.dumps(draft_payload))
        state = _fit_input_state().model_copy(update={"step": WizardStep.FIT_RESULT})

        with pytest.raises(SchemaValidationError):
            await wizard.draft_resume(state)


class TestPolish:
    @pytest.mark.asyncio
    async def test_accept_moves_to_final(self, gemini, draft_payload, fit_payload):
        gemini.return_value = _reply("# Jane Doe\nPolished")
        state = _draft_state(draft_payload, fit_payload)

        result = await wizard.polish(state, "Led a team of 3", accept=True)

        assert result.step == WizardStep.FINAL
        assert result.final_resume == "# Jane Doe\nPolished"
        assert result.resume_draft == state.resume_draft
        prompt = gemini.await_args.kwargs["contents"]
        assert "Led a team of 3" in prompt
        assert draft_payload["resumeMarkdown"] in prompt

    @pytest.mark.asyncio
    async def test_iterate_stays_on_draft(self, gemini, draft_payload, fit_payload):
        gemini.side_effect = [_reply("Round one"), _reply("Round two")]
        state = _draft_state(draft_payload, fit_payload)

        first = await wizard.polish(state, "Add AWS", accept=False)
        assert first.step == WizardStep.DRAFT
        assert first.resume_draft.resume_markdown == "Round one"
        assert first.resume_draft.critiques == state.resume_draft.critiques

        second = await wizard.polish(first, "Add Kubernetes", accept=False)
        assert second.resume_draft.resume_markdown == "Round two"
        assert "Round one" in gemini.await_args.kwargs["contents"]

    @pytest.mark.asyncio
    async def test_repolish_from_final(self, gemini, draft_payload, fit_payload):
        gemini.side_effect = [_reply("v1"), _reply("v2")]
        state = await wizard.polish(_draft_state(draft_payload, fit_payload))
        result = await wizard.polish(state, "shorter summary")
        assert result.step == WizardStep.FINAL
        assert result.final_resume == "v2"

    @pytest.mark.asyncio
    async def test_iterate_from_final_reopens_draft(self, gemini, draft_payload, fit_payload):
        gemini.side_effect = [_reply("v1"), _reply("v2")]
        final = await wizard.polish(_draft_state(draft_payload, fit_payload))

        result = await wizard.polish(final, "mention AWS", accept=False)

        assert result.step == WizardStep.DRAFT
        assert result.resume_draft.resume_markdown == "v2"
        assert result.resume_draft.critiques == final.resume_draft.critiques
        assert result.final_resume == "v2"
        assert draft_payload["resumeMarkdown"] in gemini.await_args.kwargs["contents"]

    @pytest.mark.asyncio
    async def test_empty_corrections_marked_none(self, gemini, draft_payload, fit_payload):
        gemini.return_value = _reply("done")
        await wizard.polish(_draft_state(draft_payload, fit_payload))
        assert "(none)" in gemini.await_args.kwargs["contents"]

    @pytest.mark.asyncio
    async def test_wrong_step(self, gemini):
        with pytest.raises(WizardStateError):
            await wizard.polish(_fit_input_state())


class TestNavigation:
    def test_back_keeps_artifacts(self, draft_payload, fit_payload):
        state = _draft_state(draft_payload, fit_payload)
        result = wizard.go_back(state)
        assert result.step == WizardStep.FIT_RESULT
        assert result.resume_draft is not None
        assert result.fit_analysis is not None

    def test_back_at_first_step(self):
        with pytest.raises(WizardStateError):
            wizard.go_back(WizardState())

    def test_forward_to_computed_step(self, draft_payload, fit_payload):
        state = wizard.go_to(_draft_state(draft_payload, fit_payload), WizardStep.FIT_INPUT)
        assert wizard.go_to(state, WizardStep.DRAFT).step == WizardStep.DRAFT

    def test_forward_to_uncomputed_step(self):
        with pytest.raises(WizardStateError):
            wizard.go_to(_fit_input_state(), WizardStep.FIT_RESULT)

    def test_leaving_brainstorm_stops_recording(self):
        state = WizardState(
            raw_input=RAW_INPUT,
            experience_document=EXPERIENCE_DOC,
            recording=True,
            interim_transcript="and then",
        )
        result = wizard.go_to(state, WizardStep.FIT_INPUT)
        assert result.recording is False
        assert result.interim_transcript == ""

    def test_restart_resets_everything(self, draft_payload, fit_payload):
        state = _draft_state(draft_payload, fit_payload).model_copy(update={"language": "zh"})
        result = wizard.restart(state)
        assert result.step == WizardStep.BRAINSTORM
        assert result.raw_input == ""
        assert result.job_description == ""
        assert result.experience_document == ""
        assert result.fit_analysis is None
        assert result.resume_draft is None
        assert result.language == "zh"

    def test_raw_input_editable_only_while_brainstorming(self):
        assert wizard.set_raw_input(WizardState(), "hello").raw_input == "hello"
        with pytest.raises(WizardStateError):
            wizard.set_raw_input(_fit_input_state(), "hello")

    def test_job_description_editable_only_on_fit_input(self):
        assert wizard.set_job_description(_fit_input_state(), "JD").job_description == "JD"
        with pytest.raises(WizardStateError):
            wizard.set_job_description(WizardState(), "JD")


class TestIngestUpload:
    @pytest.mark.asyncio
    async def test_text_appended_verbatim(self, gemini):
        state = WizardState(raw_input="Intro")
        result = await wizard.ingest_upload(state, "notes.md", "text/markdown", b"Line one\n  Line two")
        assert result.raw_input == "Intro\nLine one\n  Line two"
        gemini.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_image_goes_through_vision(self, gemini):
        gemini.return_value = _reply("Engineer at Acme, 2019-2023")
        result = await wizard.ingest_upload(WizardState(), "cv.PNG", "image/png", b"\x89PNG...")

        assert result.raw_input == "Engineer at Acme, 2019-2023"
        contents = gemini.await_args.kwargs["contents"]
        assert contents[0].inline_data.mime_type == "image/png"
        assert gemini.await_args.kwargs["model"] == settings.fast_model

    @pytest.mark.asyncio
    async def test_vision_failure_keeps_raw_input(self, gemini):
        gemini.side_effect = RuntimeError("quota exceeded")
        state = WizardState(raw_input="Existing notes")
        with pytest.raises(GenerationError):
            await wizard.ingest_upload(state, "cv.jpg", "image/jpeg", b"\xff\xd8")
        assert state.raw_input == "Existing notes"

    @pytest.mark.asyncio
    async def test_pdf_is_checked_then_sent(self, gemini):
        gemini.return_value = _reply("From PDF")
        with patch("services.file_ingest.count_pdf_pages", return_value=2):
            result = await wizard.ingest_upload(WizardState(), "cv.pdf", "application/pdf", b"%PDF-1.7")
        assert result.raw_input == "From PDF"
        assert gemini.await_args.kwargs["contents"][0].inline_data.mime_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_unreadable_pdf_rejected_before_model_call(self, gemini):
        with pytest.raises(UploadError):
            await wizard.ingest_upload(WizardState(), "cv.pdf", "application/pdf", b"not a pdf")
        gemini.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_type(self, gemini):
        with pytest.raises(UploadError):
            await wizard.ingest_upload(WizardState(), "cv.docx", None, b"PK")

    @pytest.mark.asyncio
    async def test_only_while_brainstorming(self, gemini):
        with pytest.raises(WizardStateError):
            await wizard.ingest_upload(_fit_input_state(), "notes.txt", "text/plain", b"x")
