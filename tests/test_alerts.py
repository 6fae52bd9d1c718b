"""
Tests for the edge-triggered alert presenter.
"""

from models.verdict import DistractionKind, DistractionVerdict
from runtime.alerts import AlertPresenter


class TestAlertPresenter:
    def _presenter(self, sound=True):
        rings = []
        return AlertPresenter(sound=sound, alarm=lambda: rings.append(1)), rings

    def test_rings_once_per_distraction_episode(self):
        presenter, rings = self._presenter()
        presenter(DistractionVerdict.of(DistractionKind.NO_FACE))
        presenter(DistractionVerdict.of(DistractionKind.PHONE))
        assert rings == [1]
        assert presenter.alarms == 1

    def test_banner_follows_verdict(self):
        presenter, _ = self._presenter()
        presenter(DistractionVerdict.of(DistractionKind.NO_FACE))
        assert presenter.banner == DistractionVerdict.of(DistractionKind.NO_FACE).message
        presenter(DistractionVerdict.of(DistractionKind.PHONE))
        assert "rectangle of distraction" in presenter.banner
        presenter(DistractionVerdict.none())
        assert presenter.banner is None

    def test_rings_again_after_refocus(self):
        presenter, rings = self._presenter()
        presenter(DistractionVerdict.of(DistractionKind.PET))
        presenter(DistractionVerdict.none())
        presenter(DistractionVerdict.of(DistractionKind.PET))
        assert len(rings) == 2

    def test_muted(self):
        presenter, rings = self._presenter(sound=False)
        presenter(DistractionVerdict.of(DistractionKind.EYES_CLOSED))
        assert rings == []
        assert presenter.alarms == 1

    def test_none_when_focused_does_nothing(self):
        presenter, rings = self._presenter()
        presenter(DistractionVerdict.none())
        assert rings == []
        assert presenter.banner is None
