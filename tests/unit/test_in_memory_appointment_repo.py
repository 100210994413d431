"""
Unit tests for InMemoryAppointmentRepository.
"""

import threading
from datetime import date, datetime

import pytest

from vetcare.domain.entities import AppointmentStatus


@pytest.mark.appointment
class TestInMemoryAppointmentRepository:
    def test_save_assigns_sequential_ids(self, repository, make_appointment):
        first = repository.save(make_appointment(time="09:00"))
        second = repository.save(make_appointment(time="09:30"))

        assert (first.id, second.id) == (1, 2)
        assert first.created_at is not None

    def test_save_keeps_explicit_id(self, repository, make_appointment):
        stored = repository.save(make_appointment(id=40))
        following = repository.save(make_appointment(time="11:00"))

        assert stored.id == 40
        assert following.id == 41

    def test_save_existing_replaces_in_place(self, repository, make_appointment):
        appointment = repository.save(make_appointment())
        appointment.confirm()

        repository.save(appointment)

        assert len(repository.list_all()) == 1
        assert repository.find_by_id(appointment.id).status == AppointmentStatus.CONFIRMED

    def test_find_by_id_missing(self, repository):
        assert repository.find_by_id(1) is None
        assert repository.find_by_id(None) is None

    def test_find_by_provider(self, repository, make_appointment, feline_provider):
        repository.save(make_appointment())
        other = repository.save(make_appointment(provider=feline_provider))

        assert repository.find_by_provider(feline_provider.id) == [other]

    def test_find_by_date_accepts_datetime(self, repository, make_appointment):
        stored = repository.save(make_appointment(scheduled_date=date(2024, 5, 3)))
        repository.save(make_appointment())

        assert repository.find_by_date(datetime(2024, 5, 3, 17, 45)) == [stored]

    def test_list_all_returns_new_list(self, repository, make_appointment):
        repository.save(make_appointment())

        repository.list_all().clear()

        assert len(repository.list_all()) == 1

    def test_delete(self, repository, make_appointment):
        stored = repository.save(make_appointment())

        assert repository.delete(stored.id) is True
        assert repository.delete(stored.id) is False
        assert repository.list_all() == []

    def test_concurrent_saves_get_unique_ids(self, repository, make_appointment):
        appointments = [make_appointment(time=f"{8 + i % 10:02d}:00") for i in range(40)]
        threads = [
            threading.Thread(target=repository.save, args=(a,)) for a in appointments
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(a.id for a in appointments) == list(range(1, 41))
