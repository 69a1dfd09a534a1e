"""Tests for the draft fold, readiness gate and context derivation."""

from schemas.session import SessionType
from services.ai.draft import (
    AccumulatedDraft,
    context_from_draft,
    fold_extractions,
    is_ready_to_save,
)


def _mistake(surah):
    return {
        "portion_surah": surah,
        "error_category": "tajweed",
        "severity_level": 3,
    }


def test_empty_log_gives_empty_draft():
    draft = fold_extractions([])
    assert draft.is_empty
    assert draft.session.duration_minutes is None
    assert not is_ready_to_save(draft)


def test_null_never_overwrites_earlier_value(make_extraction):
    draft = fold_extractions(
        [
            make_extraction(session={"duration_minutes": 20}),
            make_extraction(session={"duration_minutes": None}),
            make_extraction(session=None),
        ]
    )
    assert draft.session.duration_minutes == 20


def test_later_non_null_value_wins(make_extraction):
    draft = fold_extractions(
        [
            make_extraction(
                session={"performance_score": 5, "session_type": "memorization"}
            ),
            make_extraction(session={"performance_score": 8}),
        ]
    )
    assert draft.session.performance_score == 8
    assert draft.session.session_type is SessionType.MEMORIZATION


def test_failed_turns_contribute_nothing(make_extraction):
    draft = fold_extractions(
        [None, make_extraction(session={"duration_minutes": 15}), None]
    )
    assert draft.session.duration_minutes == 15


def test_portions_and_mistakes_are_additive_without_dedup(make_extraction):
    draft = fold_extractions(
        [
            make_extraction(
                portions=[{"surah_name": "Al-Fatiha"}],
                mistakes=[_mistake("Al-Fatiha")],
            ),
            make_extraction(portions=[{"surah_name": "Yaseen"}]),
            make_extraction(
                portions=[{"surah_name": "Al-Fatiha"}],
                mistakes=[_mistake("Al-Fatiha")],
            ),
        ]
    )
    assert [p.surah_name for p in draft.portions] == [
        "Al-Fatiha",
        "Yaseen",
        "Al-Fatiha",
    ]
    assert len(draft.mistakes) == 2


def test_fold_does_not_mutate_inputs(make_extraction):
    first = make_extraction(session={"duration_minutes": 20})
    fold_extractions([first, make_extraction(session={"duration_minutes": 40})])
    assert first.session.duration_minutes == 20


class TestReadiness:
    def test_one_named_portion_is_ready(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(portions=[{"surah_name": "Al-Mulk"}])]
        )
        assert is_ready_to_save(draft)

    def test_unnamed_portion_is_not_ready(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(portions=[{"ayah_start": 1, "ayah_end": 5}])]
        )
        assert not is_ready_to_save(draft)

    def test_blank_portion_name_is_not_ready(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(portions=[{"surah_name": ""}, {"surah_name": "  "}])]
        )
        assert not is_ready_to_save(draft)
        assert context_from_draft(draft).surah is None

    def test_unknown_mistake_alone_is_not_ready(self, make_extraction):
        draft = fold_extractions([make_extraction(mistakes=[_mistake("Unknown")])])
        assert not is_ready_to_save(draft)

    def test_named_mistake_is_ready(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(mistakes=[_mistake("Al-Baqarah")])]
        )
        assert is_ready_to_save(draft)

    def test_session_fields_alone_are_not_ready(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(session={"duration_minutes": 30})]
        )
        assert not draft.is_empty
        assert not is_ready_to_save(draft)


class TestContext:
    def test_last_named_portion_is_context_surah(self, make_extraction):
        draft = fold_extractions(
            [
                make_extraction(portions=[{"surah_name": "Al-Fatiha"}]),
                make_extraction(
                    portions=[{"surah_name": "Yaseen"}, {"surah_name": None}]
                ),
            ]
        )
        assert context_from_draft(draft).surah == "Yaseen"

    def test_session_type_is_reported_as_value(self, make_extraction):
        draft = fold_extractions(
            [make_extraction(session={"session_type": "audit"})]
        )
        context = context_from_draft(draft)
        assert context.session_type == "audit"
        assert context.surah is None

    def test_empty_draft_has_empty_context(self):
        assert context_from_draft(AccumulatedDraft()).is_empty()
