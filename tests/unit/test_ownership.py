# =============================================================================
# tests/unit/test_ownership.py
# Unit Tests for Owner Reconciliation
# =============================================================================


class TestResolveOwner:

    def test_explicit_owner_ignores_email(self):
        """An explicit owner id wins even if the email belongs to someone else"""
        from vetbook_core.services.ownership import resolve_owner

        index = {"bob@example.com": "u2"}
        record = {"ownerId": "u1", "email": "bob@example.com"}

        assert resolve_owner(record, index) == "u1"

    def test_storage_owner_column_counts_as_explicit(self):
        """owner_id is honoured too"""
        from vetbook_core.services.ownership import resolve_owner

        assert resolve_owner({"owner_id": "u7", "email": "bob@example.com"}, {"bob@example.com": "u2"}) == "u7"

    def test_email_lookup_is_case_insensitive(self, sample_users):
        """Emails match regardless of case and surrounding spaces"""
        from vetbook_core.services.ownership import build_email_index, resolve_owner

        index = build_email_index(sample_users)

        assert resolve_owner({"email": "  ALICE@example.COM "}, index) == "u1"

    def test_no_match_is_unknown(self, sample_users):
        """Unmatched and missing emails resolve to None"""
        from vetbook_core.services.ownership import build_email_index, resolve_owner

        index = build_email_index(sample_users)

        assert resolve_owner({"email": "nobody@example.com"}, index) is None
        assert resolve_owner({}, index) is None

    def test_resolution_is_idempotent(self, sample_users):
        """Resolving twice gives the same owner"""
        from vetbook_core.services.ownership import build_email_index, resolve_owner

        index = build_email_index(sample_users)
        record = {"email": "bob@example.com"}

        first = resolve_owner(record, index)
        second = resolve_owner({**record, "ownerId": first}, index)

        assert first == second == "u2"
        assert resolve_owner(record, index) == first


class TestFilterOwnedBy:

    def test_unknown_owner_never_matches(self):
        """Records without an owner are excluded from every user's list"""
        from vetbook_core.services.ownership import filter_owned_by

        records = [{"id": "a1", "ownerId": None}, {"id": "a2", "ownerId": "u1"}]

        assert [r["id"] for r in filter_owned_by(records, "u1")] == ["a2"]
        assert filter_owned_by(records, None) == []

    def test_legacy_sentinel_string_does_not_match(self):
        """A user id equal to the old sentinel does not pick up unowned records"""
        from vetbook_core.services.ownership import filter_owned_by

        records = [{"id": "a1", "ownerId": "anonymous"}, {"id": "a2", "ownerId": None}]

        assert filter_owned_by(records, "anonymous") == []

    def test_reconcile_fills_missing_owners(self, sample_users):
        """Owners are recovered from email without touching the input"""
        from vetbook_core.services.ownership import reconcile_owners

        records = [{"id": "a1", "ownerId": None, "email": "alice@example.com"}]

        reconciled = reconcile_owners(records, sample_users)

        assert reconciled[0]["ownerId"] == "u1"
        assert records[0]["ownerId"] is None
