"""
Unit tests for SchedulingService lookups, cancellation and completion.
"""

from datetime import date, datetime

import pytest

from vetcare.domain.entities import AppointmentStatus, Provider
from vetcare.services.scheduling_service import SchedulingService
from tests.factories.repository_factories import AppointmentRepositoryFactory


@pytest.fixture
def booked(scheduling_service, make_appointment):
    """Three bookings over two days and two providers."""
    second_provider = Provider(id=2, name="Lopez", specialty="General Medicine")
    return [
        scheduling_service.book(make_appointment(time="09:00")),
        scheduling_service.book(make_appointment(time="11:00")),
        scheduling_service.book(
            make_appointment(
                scheduled_date=date(2024, 5, 2), time="09:00", provider=second_provider
            )
        ),
    ]


@pytest.mark.services
@pytest.mark.appointment
class TestSchedulingQueries:
    def test_list_all_is_a_snapshot(self, scheduling_service, booked):
        snapshot = scheduling_service.list_all()
        snapshot.clear()

        assert len(scheduling_service.list_all()) == 3

    def test_list_all_shares_entities_with_caller(self, scheduling_service, booked):
        assert scheduling_service.list_all()[0] is booked[0]

    def test_list_by_provider(self, scheduling_service, booked):
        assert [a.id for a in scheduling_service.list_by_provider(1)] == [
            booked[0].id,
            booked[1].id,
        ]
        assert scheduling_service.list_by_provider(99) == []

    def test_list_by_date_compares_calendar_day(self, scheduling_service, booked):
        by_datetime = scheduling_service.list_by_date(datetime(2024, 5, 1, 23, 59))

        assert {a.id for a in by_datetime} == {booked[0].id, booked[1].id}
        assert [a.id for a in scheduling_service.list_by_date(date(2024, 5, 2))] == [
            booked[2].id
        ]

    def test_is_available(self, scheduling_service, booked):
        assert scheduling_service.is_available(1, date(2024, 5, 1), "09:00") is False
        assert scheduling_service.is_available(1, date(2024, 5, 1), "10:00") is True
        assert scheduling_service.is_available(2, date(2024, 5, 1), "09:00") is True
        assert scheduling_service.is_available(1, date(2024, 5, 2), "09:00") is True

    def test_cancelled_slot_becomes_available(self, scheduling_service, booked):
        scheduling_service.cancel(booked[0].id)

        assert scheduling_service.is_available(1, date(2024, 5, 1), "09:00") is True

    def test_get(self, scheduling_service, booked):
        assert scheduling_service.get(booked[1].id) is booked[1]
        assert scheduling_service.get(404) is None


@pytest.mark.services
@pytest.mark.appointment
class TestSchedulingCancellation:
    def test_cancel_success(self, scheduling_service, booked):
        assert scheduling_service.cancel(booked[0].id) is True
        assert booked[0].status == AppointmentStatus.CANCELLED

    def test_cancel_unknown_returns_false(self, scheduling_service, booked):
        assert scheduling_service.cancel(999) is False

    def test_cancel_completed_returns_false(self, scheduling_service, booked):
        assert scheduling_service.complete(booked[0].id, "all good") is True

        assert scheduling_service.cancel(booked[0].id) is False
        assert booked[0].status == AppointmentStatus.COMPLETED

    def test_cancel_twice_is_allowed(self, scheduling_service, booked):
        assert scheduling_service.cancel(booked[0].id) is True
        assert scheduling_service.cancel(booked[0].id) is True
        assert booked[0].status == AppointmentStatus.CANCELLED

    def test_complete_requires_confirmed(self, scheduling_service, booked):
        scheduling_service.cancel(booked[1].id)

        assert scheduling_service.complete(booked[1].id, "late") is False
        assert scheduling_service.complete(404) is False


@pytest.mark.services
@pytest.mark.appointment
class TestQueriesAgainstReaderContract:
    """The service re-filters whatever the reader hands back."""

    def test_list_by_provider_filters_foreign_rows(
        self, make_appointment, provider, feline_provider
    ):
        reader = AppointmentRepositoryFactory.create_mock_reader()
        mine = make_appointment(id=1)
        reader.find_by_provider.return_value = [
            mine,
            make_appointment(id=2, provider=feline_provider),
        ]

        service = SchedulingService(reader)

        assert service.list_by_provider(provider.id) == [mine]
        reader.find_by_provider.assert_called_once_with(provider.id)

    def test_list_by_date_filters_other_days(self, make_appointment):
        reader = AppointmentRepositoryFactory.create_mock_reader()
        same_day = make_appointment(id=1)
        reader.find_by_date.return_value = [
            same_day,
            make_appointment(id=2, scheduled_date=date(2024, 5, 9)),
        ]

        service = SchedulingService(reader)

        assert service.list_by_date(date(2024, 5, 1)) == [same_day]
        assert service.is_available(1, date(2024, 5, 1), "10:00") is False
