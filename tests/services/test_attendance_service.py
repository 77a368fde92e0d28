import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from campus_attendance import crud
from campus_attendance.core.exceptions import (
    EventMismatchError,
    EventNotFoundError,
    PayloadValidationError,
    QRCodeIntegrityError,
    RegistrationNotFoundError,
)
from campus_attendance.db.session import SessionLocal
from campus_attendance.models.scan_log import QRScanLog
from campus_attendance.schemas.attendance import ScanResultStatus
from campus_attendance.services.attendance_service import AttendanceService
from campus_attendance.services.qr.qr_signing import mint_qr_token, serialize_qr_token
from campus_attendance.services.registration_service import RegistrationService
from tests.utils.event import create_random_event, individual_payload


def _register(db, event, **kwargs):
    service = RegistrationService(user_lookup=lambda email: None)
    return service.register(db, individual_payload(event.id, **kwargs))


def _scan_logs(db, event_id):
    return (
        db.query(QRScanLog)
        .filter(QRScanLog.event_id == event_id)
        .order_by(QRScanLog.id)
        .all()
    )


class TestScan:
    def setup_method(self):
        self.service = AttendanceService()

    def test_double_scan(self, db):
        event = create_random_event(db)
        registration = _register(db, event)
        qr_data = serialize_qr_token(registration.qr_code_data)

        first = self.service.scan(db, event.id, qr_data, scanned_by="gate-1")
        second = self.service.scan(db, event.id, qr_data, scanned_by="gate-2")

        assert first.status == ScanResultStatus.marked_present
        assert second.status == ScanResultStatus.already_present
        assert second.participant.registrationId == registration.id
        assert second.participant.markedAt is not None

        logs = _scan_logs(db, event.id)
        assert [log.scan_result for log in logs] == ["success", "duplicate"]
        assert [log.scanned_by for log in logs] == ["gate-1", "gate-2"]

        record = crud.attendance.get(db, registration.id)
        assert record.status == "attended"
        assert record.marked_by == "gate-1"

    def test_participant_info(self, db):
        event = create_random_event(db)
        registration = _register(db, event, name="Meera", email="meera@christuniversity.in")

        result = self.service.scan(db, event.id, registration.qr_code_data)

        assert result.participant.name == "Meera"
        assert result.participant.email == "meera@christuniversity.in"
        assert result.participant.registrationType == "individual"
        assert _scan_logs(db, event.id)[0].scanned_by == "qr_scanner"

    def test_wrong_event(self, db):
        event_a = create_random_event(db, title="Event A")
        event_b = create_random_event(db, title="Event B")
        registration = _register(db, event_a)

        with pytest.raises(EventMismatchError) as exc:
            self.service.scan(db, event_b.id, serialize_qr_token(registration.qr_code_data))

        assert exc.value.reason == "EVENT_MISMATCH"
        logs = _scan_logs(db, event_b.id)
        assert len(logs) == 1
        assert logs[0].scan_result == "invalid"
        assert logs[0].failure_reason == "EVENT_MISMATCH"
        assert logs[0].registration_id == registration.id
        assert crud.attendance.get(db, registration.id) is None

    def test_malformed_payload(self, db):
        event = create_random_event(db)

        with pytest.raises(QRCodeIntegrityError) as exc:
            self.service.scan(db, event.id, "definitely not json", scanner_info={"device": "pixel"})

        assert exc.value.reason == "MALFORMED"
        logs = _scan_logs(db, event.id)
        assert len(logs) == 1
        assert logs[0].registration_id is None
        assert logs[0].scanner_info == {"device": "pixel"}

    def test_missing_payload(self, db):
        event = create_random_event(db)

        with pytest.raises(QRCodeIntegrityError):
            self.service.scan(db, event.id, None)

        assert _scan_logs(db, event.id)[0].failure_reason == "MALFORMED"

    def test_tampered_token(self, db):
        event = create_random_event(db)
        registration = _register(db, event)
        other = _register(db, event, register_number="2349999", email="other@x.in")
        forged = dict(registration.qr_code_data, registrationId=other.id)

        with pytest.raises(QRCodeIntegrityError) as exc:
            self.service.scan(db, event.id, json.dumps(forged))

        assert exc.value.reason == "SIGNATURE_MISMATCH"
        log = _scan_logs(db, event.id)[0]
        assert log.failure_reason == "SIGNATURE_MISMATCH"
        assert log.registration_id == other.id
        assert crud.attendance.get(db, other.id) is None

    def test_expired_token(self, db):
        event = create_random_event(db)
        registration = _register(db, event)

        with pytest.raises(QRCodeIntegrityError) as exc:
            self.service.scan(
                db,
                event.id,
                registration.qr_code_data,
                now=datetime.now(timezone.utc) + timedelta(hours=25),
            )

        assert exc.value.reason == "EXPIRED"

    def test_unknown_registration(self, db):
        event = create_random_event(db)
        token = mint_qr_token("reg_never_created", event.id, "ghost@x.in")

        with pytest.raises(RegistrationNotFoundError):
            self.service.scan(db, event.id, serialize_qr_token(token))

        log = _scan_logs(db, event.id)[0]
        assert log.scan_result == "invalid"
        assert log.failure_reason == "REGISTRATION_NOT_FOUND"
        assert log.registration_id == "reg_never_created"

    def test_concurrent_scans_mark_once(self, db):
        event = create_random_event(db)
        registration = _register(db, event)
        qr_data = serialize_qr_token(registration.qr_code_data)
        event_id = event.id

        scanners = 8
        barrier = threading.Barrier(scanners)
        results, errors = [], []

        def scan(n):
            session = SessionLocal()
            try:
                barrier.wait()
                results.append(
                    AttendanceService().scan(session, event_id, qr_data, scanned_by=f"gate-{n}").status
                )
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=scan, args=(n,)) for n in range(scanners)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results.count(ScanResultStatus.marked_present) == 1
        assert results.count(ScanResultStatus.already_present) == scanners - 1

        logs = _scan_logs(db, event_id)
        assert len(logs) == scanners
        assert sum(1 for log in logs if log.scan_result == "success") == 1


class TestMarkBulk:
    def setup_method(self):
        self.service = AttendanceService()

    def test_mark_and_revert(self, db):
        event = create_random_event(db)
        first = _register(db, event, register_number="1001", email="one@x.in")
        second = _register(db, event, register_number="1002", email="two@x.in")
        self.service.scan(db, event.id, first.qr_code_data)

        updated = self.service.mark_bulk(db, event.id, [first.id, second.id], "absent")

        assert updated == 2
        db.expire_all()
        assert crud.attendance.get(db, first.id).status == "absent"
        assert crud.attendance.get(db, first.id).marked_by == "admin"

        # A reverted participant can be scanned in again.
        result = self.service.scan(db, event.id, first.qr_code_data)
        assert result.status == ScanResultStatus.marked_present

    def test_unknown_ids_skipped(self, db):
        event = create_random_event(db)
        other_event = create_random_event(db)
        registration = _register(db, event)
        foreign = _register(db, other_event)

        updated = self.service.mark_bulk(
            db, event.id, [registration.id, "missing", foreign.id], "attended", marked_by="coordinator"
        )

        assert updated == 1
        assert crud.attendance.get(db, registration.id).marked_by == "coordinator"
        assert crud.attendance.get(db, foreign.id) is None

    def test_row_failure_is_skipped(self, db, monkeypatch):
        event = create_random_event(db)
        first = _register(db, event, register_number="1001", email="one@x.in")
        second = _register(db, event, register_number="1002", email="two@x.in")
        real_set_status = crud.attendance.set_status

        def flaky(session, **kwargs):
            if kwargs["registration_id"] == first.id:
                raise RuntimeError("row locked")
            return real_set_status(session, **kwargs)

        monkeypatch.setattr(crud.attendance, "set_status", flaky)

        assert self.service.mark_bulk(db, event.id, [first.id, second.id], "attended") == 1

    @pytest.mark.parametrize("ids, status", [([], "attended"), (["x"], "present"), (["x"], None)])
    def test_invalid_request(self, db, ids, status):
        event = create_random_event(db)
        with pytest.raises(PayloadValidationError):
            self.service.mark_bulk(db, event.id, ids, status)

    def test_event_not_found(self, db):
        with pytest.raises(EventNotFoundError):
            self.service.mark_bulk(db, "evt_missing", ["x"], "attended")


class TestParticipantsAndLogs:
    def test_participants_default_to_absent(self, db):
        service = AttendanceService()
        event = create_random_event(db, title="Code Sprint")
        present = _register(db, event, register_number="1001", email="one@x.in")
        _register(db, event, register_number="1002", email="two@x.in")
        service.scan(db, event.id, present.qr_code_data)

        result = service.get_participants(db, event.id)

        assert result["event"]["title"] == "Code Sprint"
        statuses = {p["registration_id"]: p["attendance_status"] for p in result["participants"]}
        assert statuses[present.id] == "attended"
        assert sorted(statuses.values()) == ["absent", "attended"]

    def test_scan_logs_filter(self, db):
        service = AttendanceService()
        event = create_random_event(db)
        registration = _register(db, event)
        service.scan(db, event.id, registration.qr_code_data)
        service.scan(db, event.id, registration.qr_code_data)

        duplicates = service.get_scan_logs(db, event.id, result="duplicate")

        assert len(duplicates) == 1
        assert len(service.get_scan_logs(db, event.id)) == 2

    def test_scan_logs_bad_filter(self, db):
        event = create_random_event(db)
        with pytest.raises(PayloadValidationError):
            AttendanceService().get_scan_logs(db, event.id, result="maybe")
