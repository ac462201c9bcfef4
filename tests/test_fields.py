import unittest
from datetime import date, datetime, timezone

from issue_workflows.domain.exceptions import UnknownEntityTypeException
from issue_workflows.domain.fields import (
    EntityRegistry,
    FieldKind,
    FieldMap,
    collection,
    nested,
    primitive,
    singular,
    to_camel,
    to_date,
    to_datetime,
    to_int,
    to_str,
)
from issue_workflows.domain.models import GraphQLQuery
from issue_workflows.domain.exceptions import MissingFieldException


class TestFieldMap(unittest.TestCase):
    def setUp(self) -> None:
        self.fields = FieldMap({
            "title": primitive(to_str),
            "created_at": primitive(to_datetime),
            "author": primitive(nested("login"), selection="login"),
            "labels": collection("Label"),
            "project": singular("Project"),
            "title_html": primitive(to_str, api_name="titleHTML"),
        })

    def test_api_names_default_to_camel_case(self) -> None:
        self.assertEqual(self.fields.get("created_at").api_name, "createdAt")
        self.assertEqual(self.fields.get("title_html").api_name, "titleHTML")
        self.assertEqual(self.fields.by_api_name("createdAt").name, "created_at")

    def test_primitive_fields_keep_declaration_order(self) -> None:
        names = [field.name for field in self.fields.primitive_fields()]
        self.assertEqual(names, ["title", "created_at", "author", "title_html"])

    def test_is_primitive(self) -> None:
        self.assertTrue(self.fields.is_primitive("title"))
        self.assertFalse(self.fields.is_primitive("labels"))
        self.assertFalse(self.fields.is_primitive("nonexistent"))

    def test_unregistered_name_is_absent(self) -> None:
        self.assertIsNone(self.fields.get("nonexistent"))
        self.assertNotIn("nonexistent", self.fields)

    def test_relation_kinds(self) -> None:
        self.assertEqual(self.fields.get("labels").kind, FieldKind.RELATION_COLLECTION)
        self.assertEqual(self.fields.get("project").kind, FieldKind.RELATION_SINGULAR)
        self.assertEqual([field.name for field in self.fields.relations()], ["labels", "project"])

    def test_graphql_selection(self) -> None:
        self.assertEqual(
            self.fields.graphql_selection(" "),
            "title createdAt author { login } titleHTML",
        )

    def test_merge(self) -> None:
        merged = self.fields.merge(FieldMap({"text": primitive(to_str)}))
        self.assertIn("text", merged)
        self.assertIn("title", merged)
        self.assertNotIn("text", self.fields)


class TestCoercions(unittest.TestCase):
    def test_to_camel(self) -> None:
        self.assertEqual(to_camel("viewer_can_update"), "viewerCanUpdate")
        self.assertEqual(to_camel("title"), "title")

    def test_none_passes_through(self) -> None:
        for coerce in (to_str, to_int, to_datetime, to_date, nested("login")):
            self.assertIsNone(coerce(None))

    def test_to_datetime_parses_zulu(self) -> None:
        self.assertEqual(
            to_datetime("2024-01-02T03:04:05Z"),
            datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )

    def test_to_date(self) -> None:
        self.assertEqual(to_date("2024-03-01"), date(2024, 3, 1))

    def test_nested(self) -> None:
        self.assertEqual(nested("login")({"login": "octocat"}), "octocat")


class TestEntityRegistry(unittest.TestCase):
    def _entity(self, fields):
        return type("Entity", (), {"FIELDS": FieldMap(fields)})

    def test_bind_resolves_cross_references(self) -> None:
        registry = EntityRegistry()
        issue = registry.register("Issue")(self._entity({"labels": collection("Label")}))
        label = registry.register("Label")(self._entity({"issues": collection("Issue")}))

        registry.bind()

        self.assertTrue(registry.bound)
        self.assertIs(registry.resolve("Label"), label)
        self.assertEqual(issue.TYPE_NAME, "Issue")

    def test_bind_rejects_unknown_target(self) -> None:
        registry = EntityRegistry()
        registry.register("Issue")(self._entity({"milestone": singular("Milestone")}))

        with self.assertRaises(UnknownEntityTypeException):
            registry.bind()

    def test_resolve_unknown(self) -> None:
        with self.assertRaises(LookupError):
            EntityRegistry().resolve("Nope")


class TestGraphQLQuery(unittest.TestCase):
    def test_descend(self) -> None:
        query = GraphQLQuery(text="query {}", path=["repository", "issue"])
        self.assertEqual(query.descend({"repository": {"issue": {"title": "t"}}}), {"title": "t"})

    def test_descend_names_missing_key(self) -> None:
        query = GraphQLQuery(text="query {}", path=["repository", "issue"])

        with self.assertRaises(MissingFieldException) as ctx:
            query.descend({"repository": {}})
        self.assertIn("`issue`", str(ctx.exception))
