"""Tests for measure-by-measure chord inference."""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add package root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from hummer.core import (
    ChordPrediction,
    KeyEstimate,
    KeyMode,
    Measure,
    NoteEvent,
    midi_to_freq,
    pitch_class_index,
)
from hummer.inference import (
    ChordInferenceConfig,
    ChordInferenceEngine,
    ChordQuality,
    ChordTemplate,
    KeyEstimator,
    ProgressionTag,
    diatonic_templates,
    measure_histogram,
    parse_chord_symbol,
    reuse_confidence,
    score_template,
    transition_bonus,
)

C_MAJOR = KeyEstimate(tonic=0, mode=KeyMode.MAJOR, confidence=1.0)
A_MINOR = KeyEstimate(tonic=9, mode=KeyMode.MINOR, confidence=1.0)

C_TRIAD = ChordTemplate(0, ChordQuality.MAJOR, "I", ProgressionTag.I)
G_TRIAD = ChordTemplate(7, ChordQuality.MAJOR, "V", ProgressionTag.V)
E_MINOR = ChordTemplate(4, ChordQuality.MINOR, "iii", ProgressionTag.iii)
A_MINOR_TRIAD = ChordTemplate(9, ChordQuality.MINOR, "vi", ProgressionTag.vi)


# ============================================================================
# Test Fixtures - Helper functions to create test data
# ============================================================================

def create_measure(index: int, names: list, beats: float = 1.0) -> Measure:
    """Create a measure of equal-length notes."""
    notes = tuple(
        NoteEvent(
            name=name,
            frequency=midi_to_freq(60 + pitch_class_index(name)),
            start_beat=i * beats,
            duration_beats=beats,
        )
        for i, name in enumerate(names)
    )
    return Measure(index=index, start_time=index * 2.0, notes=notes)


def create_measures(bars: list) -> list:
    return [create_measure(i, names) for i, names in enumerate(bars)]


C_MAJOR_CADENCE = [
    ["C", "G", "E", "C"],
    ["F", "A", "C", "A"],
    ["G", "B", "D", "B"],
    ["C", "G", "E", "C"],
]

A_MINOR_CADENCE = [
    ["A", "C", "E", "C"],
    ["D", "F", "A", "F"],
    ["E", "G#", "B", "G#"],
    ["A", "C", "E", "C"],
]


# ============================================================================
# Templates
# ============================================================================

class TestTemplates:
    """Tests for chord templates and diatonic sets."""

    def test_triad_tones(self):
        assert C_TRIAD.tones == (0, 4, 7)
        assert ChordTemplate(9, ChordQuality.MINOR, "vi", ProgressionTag.vi).tones == (9, 0, 4)
        assert ChordTemplate(11, ChordQuality.DIMINISHED, "vii°", ProgressionTag.vii_dim).tones == (11, 2, 5)

    def test_seventh_tones(self):
        g7 = ChordTemplate(7, ChordQuality.DOMINANT7, "V7", ProgressionTag.V)
        assert g7.tones == (7, 11, 2, 5)
        assert g7.quality.has_seventh
        assert not C_TRIAD.quality.has_seventh

    def test_symbols(self):
        assert C_TRIAD.symbol == "C"
        assert ChordTemplate(9, ChordQuality.MINOR7, "vi7", ProgressionTag.vi).symbol == "Am7"
        assert ChordTemplate(11, ChordQuality.DIMINISHED, "vii°", ProgressionTag.vii_dim).symbol == "B°"
        assert ChordTemplate(6, ChordQuality.MAJOR7, "IVmaj7", ProgressionTag.IV).symbol == "F#maj7"

    def test_predict_clamps_confidence(self):
        assert C_TRIAD.predict(1.7).confidence == 1.0
        assert C_TRIAD.predict(1.7) == ChordPrediction("C", "I")

    def test_major_key_all_diatonic(self):
        templates = diatonic_templates(C_MAJOR)
        assert len(templates) == 14
        assert all(t.tone_set <= C_MAJOR.scale for t in templates)

    def test_minor_key_borrows_dominant(self):
        """Test the major V of harmonic minor is offered in a minor key."""
        templates = diatonic_templates(A_MINOR)
        symbols = {t.symbol for t in templates}

        assert "E" in symbols
        assert "E7" in symbols
        assert "Em" in symbols
        assert len(templates) == 15

    @pytest.mark.parametrize("symbol,expected", [
        ("C", (0, ChordQuality.MAJOR)),
        ("F#m7", (6, ChordQuality.MINOR7)),
        ("Bbmaj7", (10, ChordQuality.MAJOR7)),
        ("B°", (11, ChordQuality.DIMINISHED)),
        ("G#ø7", (8, ChordQuality.HALF_DIMINISHED7)),
    ])
    def test_parse_symbol(self, symbol, expected):
        assert parse_chord_symbol(symbol) == expected

    @pytest.mark.parametrize("symbol", ["", "H", "C9", "Csus4"])
    def test_parse_invalid_symbol(self, symbol):
        with pytest.raises(ValueError):
            parse_chord_symbol(symbol)


# ============================================================================
# Scoring
# ============================================================================

class TestScoring:
    """Tests for base and context scores."""

    def test_base_confidence(self):
        histogram, total = measure_histogram(create_measure(0, ["C", "G", "E", "C"]).notes)

        score = score_template(C_TRIAD, histogram, total, C_MAJOR.scale)

        assert total == pytest.approx(4.0)
        assert score.coverage == pytest.approx(1.0)
        assert score.root_weight == pytest.approx(0.5)
        assert score.seventh_weight is None
        assert score.base_confidence == pytest.approx(0.7375)

    def test_scores_in_unit_range(self):
        rng = np.random.default_rng(0)
        engine = ChordInferenceEngine()
        for key in (C_MAJOR, A_MINOR):
            for _ in range(20):
                histogram = rng.random(12) * (rng.random(12) > 0.5)
                total = float(histogram.sum())
                if total == 0:
                    continue
                for template in diatonic_templates(key):
                    candidate = score_template(template, histogram, total, key.scale)
                    assert 0.0 <= candidate.base_confidence <= 1.0
                    for previous in (None, C_TRIAD, G_TRIAD):
                        context = engine.context_score(candidate, previous, histogram, total, key.scale)
                        assert 0.0 <= context <= 1.0

    def test_cadence_bonus(self):
        assert transition_bonus(G_TRIAD, C_TRIAD) == pytest.approx(0.18)

    def test_far_disjoint_previous_scores_lower(self):
        """Test a distant chord with no common tone is weaker context."""
        engine = ChordInferenceEngine()
        histogram, total = measure_histogram(create_measure(0, ["G", "B", "D", "B"]).notes)
        candidate = score_template(G_TRIAD, histogram, total, C_MAJOR.scale)

        far = engine.context_score(candidate, A_MINOR_TRIAD, histogram, total, C_MAJOR.scale)
        near = engine.context_score(candidate, E_MINOR, histogram, total, C_MAJOR.scale)

        assert far < near

    def test_reuse_confidence(self):
        histogram, total = measure_histogram(create_measure(0, ["C", "E", "D", "G"]).notes)
        assert reuse_confidence(C_TRIAD, histogram, total) == pytest.approx(0.6 * 0.75)
        assert reuse_confidence(C_TRIAD, np.zeros(12), 0.0) == 0.0


# ============================================================================
# Inference
# ============================================================================

class TestChordInferenceEngine:
    """Tests for ChordInferenceEngine."""

    def test_major_progression(self):
        """Test I-IV-V-I arpeggios yield triads I IV V I."""
        measures = create_measures(C_MAJOR_CADENCE)
        key = KeyEstimator().estimate(measures)

        annotated = ChordInferenceEngine().annotate(measures, key)

        assert [m.chord.degree for m in annotated] == ["I", "IV", "V", "I"]
        assert [m.chord.symbol for m in annotated] == ["C", "F", "G", "C"]
        assert annotated[0].chord.confidence == pytest.approx(0.7375)

    def test_minor_progression(self):
        """Test i-iv-V-i in A minor uses the borrowed major dominant."""
        measures = create_measures(A_MINOR_CADENCE)
        key = KeyEstimator().estimate(measures)

        annotated = ChordInferenceEngine().annotate(measures, key)

        assert [m.chord.degree for m in annotated] == ["i", "iv", "V", "i"]
        assert [m.chord.symbol for m in annotated] == ["Am", "Dm", "E", "Am"]

    def test_pick_in_suggestions(self):
        measures = create_measures(C_MAJOR_CADENCE + [["C", "D", "E", "F", "G", "A", "B", "C"]])
        annotated = ChordInferenceEngine().annotate(measures, C_MAJOR)

        for measure in annotated:
            assert len(measure.chord_suggestions) <= 5
            if measure.automatic_chord is not None:
                assert measure.automatic_chord in measure.chord_suggestions

    def test_max_suggestions(self):
        engine = ChordInferenceEngine(max_suggestions=2)
        step = engine.step(create_measure(0, ["C", "D", "E", "F", "G", "A", "B"]), C_MAJOR)
        assert len(step.suggestions) <= 2

    def test_silent_measure(self):
        """Test a measure without notes gets no chord and keeps context."""
        step = ChordInferenceEngine().step(Measure(index=3, start_time=6.0), C_MAJOR, C_TRIAD)

        assert step.prediction is None
        assert step.suggestions == ()
        assert step.previous is C_TRIAD

    def test_chromatic_measure(self):
        step = ChordInferenceEngine().step(create_measure(0, ["C#", "C#"]), C_MAJOR, C_TRIAD)
        assert step.prediction is None
        assert step.previous is C_TRIAD

    def test_reuse_previous(self):
        """Test the previous chord repeats when no candidate is selected."""
        engine = ChordInferenceEngine(ChordInferenceConfig(selection_threshold=0.99))

        step = engine.step(create_measure(1, ["C", "E", "G", "C"]), C_MAJOR, C_TRIAD)

        assert step.prediction == ChordPrediction("C", "I")
        assert step.prediction.confidence == pytest.approx(0.6)
        assert step.prediction in step.suggestions
        assert step.previous is C_TRIAD

    def test_triads_without_seventh(self):
        annotated = ChordInferenceEngine().annotate(create_measures(C_MAJOR_CADENCE), C_MAJOR)
        assert all(not m.chord.symbol.endswith("7") for m in annotated)

    def test_seventh_when_sung(self):
        step = ChordInferenceEngine().step(create_measure(0, ["G", "B", "D", "F"]), C_MAJOR)
        assert any(s.symbol == "G7" for s in step.suggestions)

    def test_no_key(self):
        measures = create_measures(C_MAJOR_CADENCE)
        annotated = ChordInferenceEngine().annotate(measures, None)

        assert len(annotated) == 4
        assert all(m.chord is None and m.chord_suggestions == () for m in annotated)

    def test_annotate_is_repeatable(self):
        engine = ChordInferenceEngine()
        measures = create_measures(A_MINOR_CADENCE)
        assert engine.annotate(measures, A_MINOR) == engine.annotate(measures, A_MINOR)

    def test_selection_not_touched(self):
        measure = create_measure(0, ["C", "E", "G"]).select_chord(ChordPrediction("Am", "vi"))
        (annotated,) = ChordInferenceEngine().annotate([measure], C_MAJOR)

        assert annotated.automatic_chord == ChordPrediction("C", "I")
        assert annotated.chord == ChordPrediction("Am", "vi")
