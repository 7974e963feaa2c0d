import os
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from queryspec.api.listing import build_listing_router
from queryspec.api.params import nest_query_params
from queryspec.core.request_logging import install_request_logging
from queryspec.db.session import get_db
from queryspec.main import app as main_app
from queryspec.services.filtered_repository import FilteredRepository

from tests.base import Person, SqliteTestBase


class NestQueryParamsTests(unittest.TestCase):
    def test_bracket_keys_become_operator_mappings(self):
        params = nest_query_params(
            [("page", "2"), ("age[gte]", "18"), ("age[lt]", "65"), ("status[in]", "a,b")]
        )
        self.assertEqual(
            params,
            {"page": "2", "age": {"gte": "18", "lt": "65"}, "status": {"in": "a,b"}},
        )

    def test_last_repeated_value_wins(self):
        self.assertEqual(nest_query_params([("age[eq]", "1"), ("age[eq]", "2")]), {"age": {"eq": "2"}})

    def test_malformed_brackets_stay_flat(self):
        self.assertEqual(nest_query_params([("age[gte", "1")]), {"age[gte": "1"})


class ListingRouterTests(SqliteTestBase):
    def setUp(self):
        super().setUp()
        self.app = FastAPI()
        self.app.include_router(build_listing_router("/people", FilteredRepository(Person)))
        install_request_logging(self.app)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app)

    def tearDown(self):
        self.client.close()
        self.app.dependency_overrides.clear()

    def test_paginated_listing(self):
        self.seed_people(25)
        response = self.client.get("/people", params={"page": "2", "limit": "10", "order": "id:ASC"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([row["id"] for row in body["data"]], list(range(11, 21)))
        self.assertEqual(
            body["metadata"],
            {
                "page": 2,
                "limit": 10,
                "total_items": 25,
                "total_pages": 3,
                "has_next_page": True,
                "has_previous_page": True,
            },
        )

    def test_bracket_search_and_projection(self):
        self.seed_people(9)
        response = self.client.get(
            "/people",
            params={"fields": "name", "age[btw]": "20,23", "status[ne]": "blocked", "order": "age:ASC"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["data"], [{"name": "person-02"}, {"name": "person-03"}, {"name": "person-05"}])
        self.assertEqual(body["metadata"]["total_items"], 3)

    def test_invalid_parameters_return_400(self):
        cases = [
            ({"page": "0"}, "Sorry, but the page must be a number greater than 0."),
            ({"limit": "51"}, "Sorry, but the limit must be a number less than 50."),
            ({"order": "name:UP"}, "Sorry, but the order must be ASC or DESC."),
            ({"age[gt]": "abc"}, "Sorry the operator gt only accepts numbers"),
            ({"age[eq]": "old"}, 'Invalid filter value for field "age" (number)'),
            ({"joined_at[eq]": "soon"}, 'Invalid filter value for field "joined_at" (datetime)'),
        ]
        for params, detail in cases:
            response = self.client.get("/people", params=params)
            self.assertEqual(response.status_code, 400, params)
            self.assertEqual(response.json()["detail"], detail)

    def test_flat_unknown_parameter_is_rejected(self):
        response = self.client.get("/people", params={"status": "active"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Please, use next operators", response.json()["detail"])

    def test_rejected_query_is_logged_with_its_detail(self):
        with self.assertLogs("queryspec.http", "WARNING") as logs:
            response = self.client.get("/people", params={"page": "0"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            logs.output,
            [
                "WARNING:queryspec.http:rejected query path=/people params=page "
                "detail=Sorry, but the page must be a number greater than 0."
            ],
        )

    def test_projection_keeps_requested_key_and_falls_back_when_unknown(self):
        self.seed_people(2)
        response = self.client.get("/people", params={"fields": "id,email", "order": "id:ASC"})
        self.assertEqual(
            response.json()["data"],
            [{"id": 1, "email": "person1@example.com"}, {"id": 2, "email": "person2@example.com"}],
        )
        response = self.client.get("/people", params={"fields": "ghost", "limit": "1"})
        self.assertEqual(set(response.json()["data"][0]), {"id", "name", "email", "age", "status", "joined_at", "verified", "deleted_at"})


class MainAppTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(main_app)

    def tearDown(self):
        self.client.close()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_access_log_lists_query_keys_only(self):
        with self.assertLogs("queryspec.http", "INFO") as logs:
            self.client.get("/health", params={"verbose": "1", "email[like]": "secret@example.com"})
        line = logs.output[-1]
        self.assertIn("GET /health status=200", line)
        self.assertIn("params=email[like],verbose", line)
        self.assertNotIn("secret@example.com", line)


if __name__ == "__main__":
    unittest.main()
