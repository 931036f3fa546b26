from datetime import date

import pytest

from log_timeline.errors import LogParseError, UnknownFormat
from log_timeline.models import Source
from log_timeline.navigation import MatchStatus
from log_timeline.session import TimelineSession

DOC_ID = "baedreic7dvjvssmh6b62azkrx6o4wmymbbwffgx3brpte2ykm3y6ukepzm"
SPACE_ID = "did:key:z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK"

DAY = date(2025, 11, 21)


class TestIngest:
    def test_starts_empty(self, session):
        assert session.timeline == ()
        assert session.filtered_timeline == ()
        assert len(session.entity_index) == 0
        assert session.current_event() is None

    def test_ingest_server(self, session, server_log_text):
        parsed = session.ingest(server_log_text, name="server.log")
        assert parsed.source is Source.SERVER
        assert len(session.timeline) == 7
        assert all(e.source is Source.SERVER for e in session.timeline)
        assert session.filtered_timeline == session.timeline

    def test_uploads_accumulate(self, session, client_log_text, server_log_text):
        session.ingest(client_log_text)
        session.ingest(server_log_text)
        assert len(session.timeline) == 15
        sources = {e.source for e in session.timeline}
        assert sources == {Source.CLIENT, Source.SERVER}
        timestamps = [e.timestamp for e in session.timeline]
        assert timestamps == sorted(timestamps)

    def test_same_file_twice_duplicates(self, session, server_log_text):
        session.ingest(server_log_text)
        session.ingest(server_log_text)
        assert len(session.timeline) == 14

    def test_index_rebuilt(self, session, server_log_text):
        session.ingest(server_log_text)
        index = session.entity_index
        assert index.doc_ids == (DOC_ID,)
        assert index.space_ids == (SPACE_ID,)
        assert index.entities[DOC_ID].event_count == 1

    def test_invalid_upload_keeps_state(self, session, server_log_text):
        session.ingest(server_log_text)
        before = (session.timeline, session.entity_index, session.filtered_timeline)
        with pytest.raises(UnknownFormat):
            session.ingest("Just some random text\nwith no log structure", name="notes.txt")
        assert (session.timeline, session.entity_index, session.filtered_timeline) == before

    def test_invalid_json_is_parse_error(self, session):
        with pytest.raises(LogParseError):
            session.ingest("{invalid json]")
        assert session.timeline == ()

    def test_accepts_bytes(self, session, client_log_text):
        session.ingest(client_log_text.encode("utf-8"))
        assert len(session.timeline) == 8

    def test_reset(self, session, server_log_text):
        session.ingest(server_log_text)
        session.set_query("rnr")
        session.reset()
        assert session.timeline == ()
        assert session.query is None
        assert len(session.entity_index) == 0


class TestSearchAndNavigation:
    @pytest.fixture
    def loaded(self, session, server_log_text):
        session.ingest(server_log_text)
        return session

    def test_set_query_filters(self, loaded):
        result = loaded.set_query("rnr")
        assert len(result) == 4
        assert result == loaded.filtered_timeline
        assert loaded.query == "rnr"
        assert loaded.match_state.label() == "Match 1 of 4"

    def test_clearing_query_shows_all(self, loaded):
        loaded.set_query("rnr")
        assert len(loaded.set_query("")) == 7
        assert loaded.match_state.status is MatchStatus.IDLE

    def test_next_and_prev(self, loaded):
        loaded.set_query("rnr")
        assert loaded.next_match() == "event-1"
        assert loaded.current_match_index == 1
        assert loaded.prev_match() == "event-0"
        assert loaded.prev_match() == "event-3"
        assert loaded.next_match() == "event-0"

    def test_current_event(self, loaded):
        loaded.set_query("rnr")
        loaded.next_match()
        assert loaded.current_event() == loaded.filtered_timeline[1]

    def test_new_query_resets_cursor(self, loaded):
        loaded.set_query("rnr")
        loaded.next_match()
        loaded.next_match()
        loaded.set_query("memory")
        assert loaded.current_match_index == 0

    def test_no_matches(self, loaded):
        assert loaded.set_query("zzzz") == ()
        assert loaded.match_state.status is MatchStatus.NO_MATCHES
        assert loaded.next_match() == "event-0"
        assert loaded.current_event() is None

    def test_query_reapplied_after_upload(self, loaded, client_log_text):
        loaded.set_query("memory")
        before = len(loaded.filtered_timeline)
        loaded.ingest(client_log_text)
        assert loaded.query == "memory"
        assert len(loaded.filtered_timeline) >= before
        assert all(e in loaded.timeline for e in loaded.filtered_timeline)


def test_default_config():
    session = TimelineSession(today=DAY)
    session.ingest("[09:15:00.250] INFO (1): ready")
    assert session.timeline[0].module == "server"
