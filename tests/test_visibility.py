import unittest

from suprimentos.errors import AccessDenied
from suprimentos.security import (
    can_view_supplier,
    ensure_record_access,
    filter_visible,
    has_full_visibility,
    is_visible,
)

REQUESTS = [
    {"id": 1, "sector": "TI", "supplier": "Fornecedor A"},
    {"id": 2, "sector": "RH", "supplier": "Fornecedor B"},
    {"id": 3, "sector": "Financeiro", "supplier": "Fornecedor C"},
    {"id": 4, "sector": "RH", "supplier": "Fornecedor A"},
]


class VisibilityTest(unittest.TestCase):
    def test_restricted_user_sees_only_own_sector(self) -> None:
        user = {"role": "user", "sector": "RH"}
        visible = filter_visible(REQUESTS, user)
        self.assertEqual([r["id"] for r in visible], [2, 4])

    def test_admin_sees_everything(self) -> None:
        user = {"role": "admin", "sector": "TI"}
        self.assertTrue(has_full_visibility(user))
        self.assertEqual(len(filter_visible(REQUESTS, user)), len(REQUESTS))

    def test_management_sectors_see_everything(self) -> None:
        for sector in ("Gerente", "Diretor"):
            user = {"role": "user", "sector": sector}
            self.assertTrue(all(is_visible(r, user) for r in REQUESTS))

    def test_custom_full_visibility_sectors(self) -> None:
        user = {"role": "user", "sector": "Auditoria"}
        self.assertFalse(is_visible(REQUESTS[0], user))
        self.assertTrue(is_visible(REQUESTS[0], user, full_visibility_sectors=("Auditoria",)))

    def test_anonymous_sees_nothing(self) -> None:
        self.assertEqual(filter_visible(REQUESTS, None), [])

    def test_direct_access_outside_sector_is_denied(self) -> None:
        user = {"role": "user", "sector": "RH"}
        self.assertIs(ensure_record_access(REQUESTS[1], user), REQUESTS[1])
        with self.assertRaises(AccessDenied):
            ensure_record_access(REQUESTS[0], user)

    def test_supplier_visible_only_through_own_sector_requests(self) -> None:
        user = {"role": "user", "sector": "Financeiro"}
        self.assertTrue(can_view_supplier({"name": "Fornecedor C"}, REQUESTS, user))
        self.assertFalse(can_view_supplier({"name": "Fornecedor A"}, REQUESTS, user))
        self.assertTrue(can_view_supplier({"name": "Fornecedor A"}, REQUESTS, {"role": "admin", "sector": ""}))


if __name__ == "__main__":
    unittest.main()
