# =============================================================================
# tests/unit/test_data_service.py
# Unit Tests for ClinicDataService Backend Selection
# =============================================================================

import pytest


class TestBackendSelection:

    def test_local_mode_uses_local_everywhere(self, data_service):
        assert data_service.mode == "local"
        assert data_service.backend_for("profiles") is data_service.local
        assert data_service.backend_for("appointments") is data_service.local

    def test_remote_mode(self, local_db, mock_supabase):
        """A Supabase client routes every table remotely except local bookkeeping"""
        from vetbook_core.auth import SupabaseAuthBackend
        from vetbook_core.config import Settings
        from vetbook_core.data.supabase_client import SupabaseService
        from vetbook_core.offline import create_data_service

        service = create_data_service(Settings(), local_db=local_db, supabase_client=mock_supabase)

        assert service.mode == "remote"
        assert isinstance(service.backend_for("pets"), SupabaseService)
        assert service.backend_for("password_reset_requests") is service.local
        assert isinstance(service.auth.backend, SupabaseAuthBackend)

    def test_unmigrated_tables_stay_local(self, local_db, mock_supabase):
        """local_tables keeps named tables on the local store"""
        from vetbook_core.config import Settings
        from vetbook_core.offline import create_data_service

        service = create_data_service(
            Settings(local_tables=("appointments",)),
            local_db=local_db,
            supabase_client=mock_supabase,
        )
        service.appointments.save_appointment({"appointmentDate": "2024-03-01"}, session_user_id="u1")
        service.pets.create_pet("u1", {"name": "Rex"})

        assert service.mode == "mixed"
        assert len(local_db.read_collection("appointments")) == 1
        assert mock_supabase.tables["pets"][0]["name"] == "Rex"
        assert "appointments" not in mock_supabase.tables

    def test_local_backend_setting_ignores_client(self, local_db, mock_supabase):
        from vetbook_core.config import Settings
        from vetbook_core.offline import create_data_service

        service = create_data_service(Settings(backend="local"), local_db=local_db, supabase_client=mock_supabase)

        assert service.mode == "local"
        assert mock_supabase.executed == []

    def test_status(self, data_service):
        status = data_service.get_status()

        assert status["mode"] == "local"
        assert "credentials" in status["local_tables"]


class TestCatalog:

    def test_feedback_round_trip(self, data_service):
        from vetbook_core.services import CatalogRepository

        catalog = CatalogRepository(data_service.local, data_service.local, data_service.local)
        catalog.create_feedback({"userId": "u1", "appointmentId": "a1", "rating": 5, "comment": "Great"})

        feedback = catalog.get_feedback("a1")

        assert feedback["rating"] == 5
        assert feedback["userId"] == "u1"
        assert catalog.get_feedback("a2") is None

    def test_feedback_rating_is_checked(self, data_service):
        from vetbook_core.errors import DataValidationError

        with pytest.raises(DataValidationError):
            data_service.catalog.create_feedback({"appointmentId": "a1", "rating": 9})

    def test_medical_records_join_vet(self, data_service, local_db):
        local_db.write_collection("users", [{"id": "v1", "full_name": "Dr. Dlamini", "role": "veterinarian"}])
        local_db.write_collection("medical_records", [
            {"id": "m1", "pet_id": "p1", "vet_id": "v1", "diagnosis": "Otitis"},
            {"id": "m2", "pet_id": "p2", "vet_id": "v1", "diagnosis": "Healthy"},
        ])

        records = data_service.catalog.list_medical_records("p1")

        assert len(records) == 1
        assert records[0]["vet"]["fullName"] == "Dr. Dlamini"
        assert records[0]["vet"]["role"] == "vet"

    def test_services_list(self, data_service, local_db):
        local_db.write_collection("services", [{"id": "s1", "name": "Checkup", "price": 350, "duration": 30}])

        assert data_service.catalog.list_services()[0]["price"] == 350


class TestProfiles:

    def test_find_by_email_is_case_insensitive(self, data_service, seeded_users):
        assert data_service.profiles.find_by_email("BOB@example.com")["id"] == "u2"
        assert data_service.profiles.find_by_email("none@example.com") is None

    def test_update_role_labels(self, data_service, seeded_users):
        assert data_service.profiles.update_role("u1", "Admin")["role"] == "admin"
        assert data_service.profiles.update_role("u1", "Customer")["role"] == "user"

    def test_update_status_and_delete(self, data_service, seeded_users):
        assert data_service.profiles.update_status("u1", "Inactive")["status"] == "Inactive"
        assert data_service.profiles.delete_user("u1") is True
        assert data_service.profiles.get_profile("u1") is None
        assert data_service.profiles.update_status("u1", "Active") is None


class TestMixedModeJoins:

    def test_local_appointments_join_remote_pets_and_owners(self, local_db, mock_supabase):
        """Joins read the backend the joined table is routed to"""
        from vetbook_core.config import Settings
        from vetbook_core.offline import create_data_service

        mock_supabase.tables["profiles"] = [{"id": "u1", "full_name": "Alice Moyo", "email": "alice@example.com"}]
        service = create_data_service(
            Settings(local_tables=("appointments",)),
            local_db=local_db,
            supabase_client=mock_supabase,
        )
        pet = service.pets.create_pet("u1", {"name": "Rex", "species": "dog"})
        service.appointments.save_appointment(
            {"appointmentDate": "2024-03-01", "petId": pet["id"]},
            session_user_id="u1",
        )

        appointment = service.appointments.list_appointments()[0]

        assert appointment["pet"]["name"] == "Rex"
        assert appointment["owner"]["fullName"] == "Alice Moyo"
        assert appointment["vet"] is None

    def test_remote_appointments_join_local_pets(self, local_db, mock_supabase):
        """Joins to a local table are not sent to the row store"""
        from vetbook_core.config import Settings
        from vetbook_core.offline import create_data_service

        service = create_data_service(
            Settings(local_tables=("pets",)),
            local_db=local_db,
            supabase_client=mock_supabase,
        )
        pet = service.pets.create_pet("u1", {"name": "Rex"})
        service.appointments.save_appointment(
            {"appointmentDate": "2024-03-01", "petId": pet["id"]},
            session_user_id="u1",
        )

        appointment = service.appointments.list_appointments()[0]
        select_clauses = [q.columns for q in mock_supabase.executed if q.table == "appointments" and q.operation == "select"]

        assert appointment["pet"]["name"] == "Rex"
        assert all("pets!pet_id" not in clause for clause in select_clauses)
