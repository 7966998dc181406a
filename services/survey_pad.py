# services/survey_pad.py

from typing import List

from core.local_store import LocalStore, SURVEY_PAD_KEY


def _decode_notes(raw) -> List[str]:
    if not isinstance(raw, list) or not all(isinstance(n, str) for n in raw):
        raise TypeError("survey notes must be a list of strings")
    return raw


class SurveyPad:
    """Field notes kept on the device, newest first."""

    def __init__(self, store: LocalStore):
        self.store = store
        self.notes: List[str] = store.load(SURVEY_PAD_KEY, list, _decode_notes)

    def add(self, note: str) -> List[str]:
        if not (note or "").strip():
            return self.notes
        self.notes = [note] + self.notes
        self.store.set(SURVEY_PAD_KEY, self.notes)
        return self.notes
