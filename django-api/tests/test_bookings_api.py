"""Integration tests for the bookings HTTP API.

These run the full stack: views, services and the Django ORM stores.
Run with: pytest tests/test_bookings_api.py -v
"""

import uuid

import pytest
from rest_framework.test import APIClient


def new_id() -> str:
    return str(uuid.uuid4())


def basics(school, name="Pat Coach"):
    return {
        "schoolId": school.pk,
        "name": name,
        "emailAddress": "pat@example.org",
        "authority": "coach",
    }


def order_game(client: APIClient, school, opponent) -> str:
    """Create a booking for school with one game against opponent; return its creation id."""
    creation_id = new_id()
    response = client.post(f"/api/bookings/{creation_id}", basics(school), format="json")
    assert response.status_code == 201
    response = client.post(
        f"/api/bookings/{creation_id}/nonConferenceGames",
        [{"schoolIds": [school.pk, opponent.pk]}],
        format="json",
    )
    assert response.status_code == 200
    return creation_id


def commit_resolved(client: APIClient, creation_id: str):
    plan = client.get(f"/api/bookings/{creation_id}/potentialPacketAssignments").json()
    return client.post(f"/api/bookings/{creation_id}/packetAssignments", plan, format="json")


@pytest.mark.django_db
class TestCatalog:
    """Tests for the catalog endpoints."""

    def test_list_schools_active_filter(self, api_client: APIClient, catalog_rows):
        """Given an inactive school, filter=active leaves it out."""
        all_names = [s["shortName"] for s in api_client.get("/api/schools").json()]
        active_names = [s["shortName"] for s in api_client.get("/api/schools?filter=active").json()]

        assert "Closed" in all_names
        assert "Closed" not in active_names

    def test_unknown_filter_returns_400(self, api_client: APIClient, catalog_rows):
        response = api_client.get("/api/schools?filter=nearby")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    def test_current_year(self, api_client: APIClient, catalog_rows):
        response = api_client.get("/api/years/current")

        assert response.status_code == 200
        assert response.json()["code"] == "2024-25"

    def test_current_year_without_years_returns_404(self, api_client: APIClient, db):
        assert api_client.get("/api/years/current").status_code == 404

    def test_packets_filtered_by_use_and_year(self, api_client: APIClient, catalog_rows):
        response = api_client.get("/api/packets?filter=availableForPractice&yearCode=2023-24")

        data = response.json()
        assert [p["number"] for p in data] == [1, 2]
        assert all(p["yearCode"] == "2023-24" for p in data)
        assert data[0]["priceAsPracticeMaterial"] == 10

    def test_list_is_served_from_cache_until_invalidated(self, api_client: APIClient, catalog_rows):
        from bookings.models import School

        first = api_client.get("/api/schools").json()
        School.objects.filter(short_name="Gamma").update(name="Renamed")
        assert api_client.get("/api/schools").json() == first

        School.objects.create(short_name="Delta", name="Delta Middle School")
        assert len(api_client.get("/api/schools").json()) == len(first) + 1

    def test_practice_material_lists(self, api_client: APIClient, catalog_rows):
        assert api_client.get("/api/stateSeries").json()[0]["price"] == 30
        assert api_client.get("/api/compilations?filter=available").json()[0]["name"] == "Greatest Hits"


@pytest.mark.django_db
class TestBookingDetail:
    """Tests for GET|POST|DELETE /api/bookings/{creationId}"""

    def test_create_then_get(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        alpha = catalog_rows.schools["Alpha"]

        created = api_client.post(f"/api/bookings/{creation_id}", basics(alpha), format="json")
        fetched = api_client.get(f"/api/bookings/{creation_id}")

        assert created.status_code == 201
        assert fetched.status_code == 200
        data = fetched.json()
        assert data["creationId"] == creation_id
        assert data["statusCode"] == "unsubmitted"
        assert data["school"]["id"] == alpha.pk
        assert data["cost"] == 0
        assert "internalNote" not in data

    def test_second_post_updates(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = api_client.post(
            f"/api/bookings/{creation_id}", {"externalNote": "Ship early"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["externalNote"] == "Ship early"

    def test_partial_basics_rejected(self, api_client: APIClient, catalog_rows):
        response = api_client.post(
            f"/api/bookings/{new_id()}",
            {"schoolId": catalog_rows.schools["Alpha"].pk},
            format="json",
        )
        assert response.status_code == 400

    def test_inactive_school_returns_404(self, api_client: APIClient, catalog_rows):
        response = api_client.post(
            f"/api/bookings/{new_id()}", basics(catalog_rows.schools["Closed"]), format="json"
        )

        assert response.status_code == 404
        assert response.json()["code"] == "SCHOOL_NOT_FOUND"

    def test_get_booking_not_found(self, api_client: APIClient, db):
        """Given booking does not exist, returns 404."""
        response = api_client.get(f"/api/bookings/{new_id()}")

        assert response.status_code == 404
        assert response.json() == {
            "code": "BOOKING_NOT_FOUND",
            "message": "Booking not found",
            "errors": [],
        }

    def test_get_booking_invalid_id_format(self, api_client: APIClient, db):
        """Given invalid UUID, returns 400."""
        response = api_client.get("/api/bookings/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_CREATION_ID"

    def test_delete_requires_staff(self, api_client: APIClient, staff_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        assert api_client.delete(f"/api/bookings/{creation_id}").status_code == 401
        assert staff_client.delete(f"/api/bookings/{creation_id}").status_code == 204
        assert api_client.get(f"/api/bookings/{creation_id}").status_code == 404

    def test_staff_sees_and_sets_internal_note(self, staff_client: APIClient, catalog_rows):
        creation_id = new_id()
        staff_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = staff_client.post(
            f"/api/bookings/{creation_id}", {"internalNote": "Called the coach"}, format="json"
        )

        assert response.json()["internalNote"] == "Called the coach"

    def test_customer_cannot_set_internal_note(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = api_client.post(
            f"/api/bookings/{creation_id}", {"internalNote": "sneaky"}, format="json"
        )

        assert response.status_code == 400


@pytest.mark.django_db
class TestBookingParts:
    """Tests for conference, games and practice selection endpoints."""

    def test_conference_membership(self, api_client: APIClient, catalog_rows):
        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(alpha), format="json")

        response = api_client.post(
            f"/api/bookings/{creation_id}/conference",
            {"name": "Lakes", "packetsRequested": 2, "schoolIds": [beta.pk, alpha.pk, gamma.pk]},
            format="json",
        )

        conference = response.json()["conference"]
        assert conference["schoolIds"][0] == alpha.pk
        assert sorted(conference["schoolIds"]) == sorted([alpha.pk, beta.pk, gamma.pk])

        deleted = api_client.delete(f"/api/bookings/{creation_id}/conference")
        assert deleted.json()["conference"] is None

    def test_game_with_one_school_is_rejected(self, api_client: APIClient, catalog_rows):
        alpha = catalog_rows.schools["Alpha"]
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(alpha), format="json")

        response = api_client.post(
            f"/api/bookings/{creation_id}/nonConferenceGames",
            [{"schoolIds": [alpha.pk]}],
            format="json",
        )

        assert response.status_code == 400

    def test_delete_unknown_game_returns_404(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = api_client.delete(f"/api/bookings/{creation_id}/nonConferenceGames/999")

        assert response.status_code == 404
        assert response.json()["code"] == "GAME_NOT_FOUND"

    def test_practice_selection_replaces_list(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")
        packet_ids = [p.pk for p in catalog_rows.practice_packets]

        api_client.post(f"/api/bookings/{creation_id}/practicePackets", packet_ids, format="json")
        response = api_client.post(
            f"/api/bookings/{creation_id}/practicePackets", packet_ids[:1], format="json"
        )

        selections = response.json()["practiceSelections"]
        assert [p["id"] for p in selections["packets"]] == packet_ids[:1]
        assert selections["stateSeries"] == []

    def test_practice_selection_requires_id_list(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = api_client.post(
            f"/api/bookings/{creation_id}/stateSeries", {"ids": [1]}, format="json"
        )

        assert response.status_code == 400


@pytest.mark.django_db
class TestPacketAssignment:
    """Tests for availability, commit and exposure endpoints."""

    def test_lowest_non_conflicting_packet_is_assigned(self, api_client: APIClient, catalog_rows):
        """Packet 1 is exposed to Beta by an unrelated order, so Alpha's game gets packet 2."""
        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        other = order_game(api_client, gamma, beta)
        assert commit_resolved(api_client, other).status_code == 200
        mine = order_game(api_client, alpha, beta)

        plan = api_client.get(f"/api/bookings/{mine}/potentialPacketAssignments").json()

        assert len(plan) == 1
        assert plan[0]["packetId"] == catalog_rows.packets[1].pk
        assert plan[0]["isMissingPacketAssignment"] is False
        assert plan[0]["description"] == "the game between Alpha and Beta"

    def test_exhausted_pool_reports_missing_and_refuses_commit(
        self, api_client: APIClient, catalog_rows
    ):
        from bookings.models import Packet

        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        Packet.objects.filter(pk__in=[p.pk for p in catalog_rows.packets[1:]]).update(
            available_for_competition=False
        )
        other = order_game(api_client, gamma, beta)
        commit_resolved(api_client, other)
        mine = order_game(api_client, alpha, beta)

        plan = api_client.get(f"/api/bookings/{mine}/potentialPacketAssignments").json()
        assert plan[0]["isMissingPacketAssignment"] is True
        assert plan[0]["packetId"] is None

        response = api_client.post(f"/api/bookings/{mine}/packetAssignments", plan, format="json")
        assert response.status_code == 409
        assert response.json()["code"] == "MISSING_PACKET_ASSIGNMENT"

    def test_stale_plan_conflicts(self, api_client: APIClient, catalog_rows):
        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        first = order_game(api_client, alpha, beta)
        second = order_game(api_client, gamma, beta)
        first_plan = api_client.get(f"/api/bookings/{first}/potentialPacketAssignments").json()
        second_plan = api_client.get(f"/api/bookings/{second}/potentialPacketAssignments").json()

        api_client.post(f"/api/bookings/{first}/packetAssignments", first_plan, format="json")
        response = api_client.post(
            f"/api/bookings/{second}/packetAssignments", second_plan, format="json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "PACKET_CONFLICT"

    def test_commit_twice_is_idempotent(self, api_client: APIClient, catalog_rows):
        alpha, beta = catalog_rows.schools["Alpha"], catalog_rows.schools["Beta"]
        creation_id = order_game(api_client, alpha, beta)
        plan = api_client.get(f"/api/bookings/{creation_id}/potentialPacketAssignments").json()

        first = api_client.post(f"/api/bookings/{creation_id}/packetAssignments", plan, format="json")
        second = api_client.post(f"/api/bookings/{creation_id}/packetAssignments", plan, format="json")

        assert second.status_code == 200
        assert second.json()["nonConferenceGames"] == first.json()["nonConferenceGames"]
        assert len(api_client.get("/api/packetExposures").json()) == 2

    def test_clear_assignments_releases_exposures(self, api_client: APIClient, catalog_rows):
        alpha, beta = catalog_rows.schools["Alpha"], catalog_rows.schools["Beta"]
        creation_id = order_game(api_client, alpha, beta)
        commit_resolved(api_client, creation_id)

        response = api_client.delete(f"/api/bookings/{creation_id}/packetAssignments")

        assert response.json()["nonConferenceGames"][0]["assignedPacket"] is None
        assert api_client.get("/api/packetExposures?yearCode=2024-25").json() == []

    def test_exposures_skip_other_years_and_unassigned_bookings(
        self, api_client: APIClient, catalog_rows
    ):
        from bookings.domain import CreationId
        from bookings.models import NonConferenceGame
        from bookings.stores.django_store import DjangoExposureStore

        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        current = order_game(api_client, alpha, beta)
        commit_resolved(api_client, current)
        past = order_game(api_client, gamma, beta)
        NonConferenceGame.objects.filter(booking__creation_id=past).update(
            assigned_packet=catalog_rows.practice_packets[0]
        )
        order_game(api_client, alpha, gamma)
        store = DjangoExposureStore()

        this_year = store.list_exposures(year_code=catalog_rows.current.code)
        last_year = store.list_exposures(year_code=catalog_rows.past.code)

        assert {str(e.booking_creation_id) for e in this_year} == {current}
        assert {e.packet_id for e in last_year} == {catalog_rows.practice_packets[0].pk}
        assert len(store.list_exposures()) == 4
        assert store.list_exposures(
            year_code=catalog_rows.current.code,
            exclude_booking=CreationId.from_string(current),
        ) == []

    def test_double_booking_report_is_staff_only(
        self, api_client: APIClient, staff_client: APIClient, catalog_rows
    ):
        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        first = order_game(api_client, alpha, beta)
        commit_resolved(api_client, first)
        second = order_game(api_client, gamma, beta)
        game_id = api_client.get(f"/api/bookings/{second}").json()["nonConferenceGames"][0]["id"]
        staff_client.post(
            f"/api/bookings/{second}/nonConferenceGames/{game_id}/packet",
            {"packetId": catalog_rows.packets[0].pk},
            format="json",
        )

        assert api_client.get("/api/packetExposures/doubleBookings").status_code == 401
        report = staff_client.get("/api/packetExposures/doubleBookings").json()
        assert {(e["schoolId"], e["packetId"]) for e in report} == {
            (beta.pk, catalog_rows.packets[0].pk)
        }


@pytest.mark.django_db
class TestInvoiceAndStatus:
    """Tests for invoice endpoints and staff status changes."""

    def test_preview_and_staff_lines(self, api_client: APIClient, staff_client: APIClient, catalog_rows):
        alpha, beta = catalog_rows.schools["Alpha"], catalog_rows.schools["Beta"]
        creation_id = order_game(api_client, alpha, beta)

        preview = api_client.get(f"/api/bookings/{creation_id}/invoicePreview").json()
        assert [(line["type"], line["unitCost"]) for line in preview] == [("nonConferenceGame", 15)]

        line = {"label": "Rush shipping", "quantity": 1, "unitCost": "12.50"}
        assert api_client.post(f"/api/bookings/{creation_id}/invoice", line, format="json").status_code == 401
        added = staff_client.post(f"/api/bookings/{creation_id}/invoice", line, format="json")
        assert added.status_code == 201
        assert added.json()["cost"] == 12.5

        line_id = added.json()["invoiceLines"][0]["id"]
        patched = staff_client.patch(
            f"/api/bookings/{creation_id}/invoice/{line_id}", {"quantity": 2}, format="json"
        )
        assert patched.json()["cost"] == 25

        recalculated = staff_client.post(f"/api/bookings/{creation_id}/recalculateInvoice")
        assert recalculated.json()["cost"] == 15

        cleared = api_client.delete(f"/api/bookings/{creation_id}/invoice")
        assert cleared.json()["invoiceLines"] == []

    def test_status_change_is_staff_only(self, api_client: APIClient, staff_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")
        url = f"/api/bookings/{creation_id}/status"

        assert api_client.post(url, {"status": "abandoned"}, format="json").status_code == 401
        response = staff_client.post(url, {"status": "shipped"}, format="json")
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"
        assert staff_client.post(url, {"status": "abandoned"}, format="json").json()["statusCode"] == "abandoned"

    def test_booking_list_filters_by_status(self, staff_client: APIClient, catalog_rows):
        first, second = new_id(), new_id()
        for creation_id in (first, second):
            staff_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")
        staff_client.post(f"/api/bookings/{second}/submit", {}, format="json")

        response = staff_client.get("/api/bookings?statusCode=submitted")

        assert [b["creationId"] for b in response.json()] == [second]

    def test_booking_list_rejects_non_staff(self, api_client: APIClient, django_user_model, db):
        user = django_user_model.objects.create_user(username="coach", password="secret")
        api_client.force_authenticate(user=user)

        assert api_client.get("/api/bookings").status_code == 403

    def test_bearer_token_grants_staff_access(self, api_client: APIClient, admin_user):
        token = api_client.post(
            "/api/auth/token", {"username": "admin", "password": "password"}, format="json"
        ).json()["access"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        assert api_client.get("/api/bookings").status_code == 200


@pytest.mark.django_db
class TestOrderWizard:
    """End-to-end tests for /api/bookings/{creationId}/flow"""

    def _step(self, client, creation_id, number, payload):
        return client.post(f"/api/bookings/{creation_id}/flow/steps/{number}", payload, format="json")

    def test_single_game_order_end_to_end(self, api_client: APIClient, catalog_rows):
        """Alpha orders one game against Beta, who already heard packet 1 elsewhere."""
        alpha, beta, gamma = (catalog_rows.schools[n] for n in ("Alpha", "Beta", "Gamma"))
        other = order_game(api_client, gamma, beta)
        commit_resolved(api_client, other)
        creation_id = new_id()

        state = self._step(
            api_client,
            creation_id,
            1,
            {"schoolId": alpha.pk, "name": "Pat Coach", "emailAddress": "pat@example.org", "isCoach": True},
        ).json()
        assert state["currentStep"] == 2

        state = self._step(api_client, creation_id, 2, {"orderingForConference": False}).json()
        assert state["currentStep"] == 3

        state = self._step(
            api_client,
            creation_id,
            3,
            {"orderNonConferenceGames": True, "games": [{"schoolIds": [alpha.pk, beta.pk]}]},
        ).json()
        assert state["currentStep"] == 4
        assert [a["packetId"] for a in state["potentialAssignments"]] == [catalog_rows.packets[1].pk]

        state = self._step(
            api_client, creation_id, 4, {"assignments": state["potentialAssignments"]}
        ).json()
        game = state["booking"]["nonConferenceGames"][0]
        assert game["assignedPacket"]["number"] == 2

        state = self._step(api_client, creation_id, 5, {"orderPracticeQuestions": False}).json()
        assert state["currentStep"] == 6
        assert [line["unitCost"] for line in state["invoicePreview"]] == [15]

        response = self._step(api_client, creation_id, 6, {"externalNote": "", "requestsW9": False})

        assert response.status_code == 200
        state = response.json()
        assert state["booking"]["statusCode"] == "submitted"
        assert state["readOnly"] is True
        assert state["booking"]["cost"] == 15
        assert len(state["booking"]["invoiceLines"]) == 1

        resumed = api_client.get(f"/api/bookings/{creation_id}/flow").json()
        assert resumed["readOnly"] is True
        assert resumed["currentStep"] == 6

        locked = api_client.post(f"/api/bookings/{creation_id}/conference", {
            "name": "Lakes", "packetsRequested": 1, "schoolIds": [beta.pk, gamma.pk],
        }, format="json")
        assert locked.status_code == 409
        assert locked.json()["code"] == "BOOKING_LOCKED"

    def test_step_validation_returns_errors_and_state(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        alpha = catalog_rows.schools["Alpha"]
        self._step(
            api_client,
            creation_id,
            1,
            {"schoolId": alpha.pk, "name": "Pat Coach", "emailAddress": "pat@example.org", "isCoach": True},
        )

        response = self._step(api_client, creation_id, 2, {})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert body["errors"] == [
            "Please indicate whether you are ordering for a conference or tournament."
        ]
        assert body["state"]["currentStep"] == 2

    def test_step_one_errors_for_new_booking_have_no_state(self, api_client: APIClient, db):
        response = self._step(api_client, new_id(), 1, {"name": "Pat"})

        assert response.status_code == 400
        assert response.json()["state"] is None

    def test_go_to_unseen_step_returns_400(self, api_client: APIClient, catalog_rows):
        creation_id = new_id()
        api_client.post(f"/api/bookings/{creation_id}", basics(catalog_rows.schools["Alpha"]), format="json")

        response = api_client.post(f"/api/bookings/{creation_id}/flow/goTo", {"step": 5}, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "STEP_NOT_REACHABLE"

    def test_moving_back_past_availability_blocks_confirm(self, api_client: APIClient, catalog_rows):
        """After going back to step 2, the order cannot reach Confirm or be submitted without packets."""
        alpha, beta = catalog_rows.schools["Alpha"], catalog_rows.schools["Beta"]
        creation_id = new_id()
        self._step(
            api_client,
            creation_id,
            1,
            {"schoolId": alpha.pk, "name": "Pat Coach", "emailAddress": "pat@example.org", "isCoach": True},
        )
        self._step(api_client, creation_id, 2, {"orderingForConference": False})
        self._step(
            api_client,
            creation_id,
            3,
            {"orderNonConferenceGames": True, "games": [{"schoolIds": [alpha.pk, beta.pk]}]},
        )
        self._step(api_client, creation_id, 4, {})
        self._step(api_client, creation_id, 5, {"orderPracticeQuestions": False})

        api_client.post(f"/api/bookings/{creation_id}/flow/goTo", {"step": 2}, format="json")
        skipped = api_client.post(f"/api/bookings/{creation_id}/flow/goTo", {"step": 5}, format="json")
        resumed = api_client.get(f"/api/bookings/{creation_id}/flow").json()
        submitted = api_client.post(f"/api/bookings/{creation_id}/submit", {}, format="json")

        assert skipped.status_code == 400
        assert skipped.json()["code"] == "STEP_NOT_REACHABLE"
        assert resumed["currentStep"] == 4
        assert resumed["booking"]["nonConferenceGames"][0]["assignedPacket"] is None
        assert submitted.status_code == 400
        assert submitted.json()["code"] == "VALIDATION_FAILED"

    def test_unknown_step_returns_400(self, api_client: APIClient, db):
        assert self._step(api_client, new_id(), 9, {}).status_code == 400
