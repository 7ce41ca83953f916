import logging

from sqlalchemy import text

from transit_reservation.entities import Passenger
from transit_reservation.enums import BenefitType


def test_same_document_is_stored_once(repos, make_passenger):
    first = make_passenger(number="FX200001", name="Iryna Tkachenko")
    duplicate = Passenger("Someone Else", "PASSPORT", "FX200001", email="other@example.com")

    assert repos.passengers.add_or_get_passenger(duplicate) == first.id
    assert duplicate.id == 0

    stored = repos.passengers.get_all_passengers()
    assert len(stored) == 1
    assert stored[0].full_name == "Iryna Tkachenko"
    assert stored[0].email is None


def test_document_type_is_part_of_identity(repos, make_passenger):
    passport = make_passenger(number="AB123", doc_type="PASSPORT")
    card = make_passenger(number="AB123", doc_type="ID_CARD")
    assert passport.id != card.id


def test_find_passenger_by_document_and_id(repos, make_passenger):
    passenger = make_passenger(phone_number="+380-67-0000001", benefit_type=BenefitType.STUDENT)

    found = repos.passengers.find_by_document("PASSPORT", "FX100001")
    assert found == passenger
    assert found.benefit_type is BenefitType.STUDENT
    assert repos.passengers.find_by_id(passenger.id).phone_number == "+380-67-0000001"
    assert repos.passengers.find_by_document("PASSPORT", "NOPE") is None
    assert repos.passengers.find_by_id(999) is None


def test_missing_benefit_reads_back_as_none(repos, make_passenger):
    passenger = make_passenger(benefit_type=None)
    assert repos.passengers.find_by_id(passenger.id).benefit_type is BenefitType.NONE


def test_passengers_listed_by_name(repos, make_passenger):
    make_passenger(number="1", name="Taras Boyko")
    make_passenger(number="2", name="Andrii Kovalenko")
    assert [p.full_name for p in repos.passengers.get_all_passengers()] == ["Andrii Kovalenko", "Taras Boyko"]


def test_update_passenger(repos, make_passenger):
    passenger = make_passenger()
    passenger.email = "olena@example.com"
    passenger.benefit_type = BenefitType.PENSIONER

    assert repos.passengers.update_passenger(passenger) is True
    stored = repos.passengers.find_by_id(passenger.id)
    assert stored.email == "olena@example.com"
    assert stored.benefit_type is BenefitType.PENSIONER

    passenger.id = 404
    assert repos.passengers.update_passenger(passenger) is False


def test_concurrent_insert_of_same_document_resolves_to_winner(repos, make_passenger, monkeypatch):
    winner = make_passenger(number="FX300003", name="Sofiia Bondarenko")
    real_lookup = repos.passengers.find_by_document
    calls = []

    def stale_first_lookup(document_type, document_number):
        calls.append(document_number)
        if len(calls) == 1:
            return None
        return real_lookup(document_type, document_number)

    monkeypatch.setattr(repos.passengers, "find_by_document", stale_first_lookup)

    late = Passenger("Sofiia B.", "PASSPORT", "FX300003")
    assert repos.passengers.add_or_get_passenger(late) == winner.id
    assert len(calls) == 2
    assert len(repos.passengers.get_all_passengers()) == 1


def test_unknown_benefit_reads_back_as_none(repos, make_passenger, raw_engine, caplog):
    passenger = make_passenger(benefit_type=BenefitType.STUDENT)
    with raw_engine.begin() as conn:
        conn.execute(text("UPDATE passengers SET benefit_type = 'VETERAN' WHERE id = :id"), {"id": passenger.id})

    caplog.set_level(logging.ERROR)
    assert repos.passengers.find_by_id(passenger.id).benefit_type is BenefitType.NONE
    assert [p.benefit_type for p in repos.passengers.get_all_passengers()] == [BenefitType.NONE]
    assert "VETERAN" in caplog.text
