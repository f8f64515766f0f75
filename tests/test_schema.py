from __future__ import annotations

import pytest

from persistence import IMAGE_SCHEMA, QUIZ_SCHEMA, CollectionSchema, ValidationError


def test_schema_refuses_generated_fields_as_mutable():
    with pytest.raises(ValueError):
        CollectionSchema(mutable=("id",))
    with pytest.raises(ValueError):
        CollectionSchema(defaults={"createdAt": "now"})


def test_prepare_insert_applies_defaults_without_overriding():
    schema = CollectionSchema(required=("title",), defaults={"views": 0, "imageUrl": None})
    assert schema.prepare_insert({"title": "t", "views": 4}) == {"title": "t", "views": 4, "imageUrl": None}


def test_prepare_insert_rejects_non_json_values():
    schema = CollectionSchema(required=("title",))
    with pytest.raises(ValidationError) as exc:
        schema.prepare_insert({"title": "t", "tags": {"a", "b"}})
    assert exc.value.fields == ("tags",)

    with pytest.raises(ValidationError):
        schema.prepare_insert({"title": "t", "score": float("nan")})


def test_prepare_insert_requires_mapping():
    with pytest.raises(ValidationError):
        CollectionSchema().prepare_insert(["title"])  # type: ignore[arg-type]


def test_closed_schema_rejects_unknown_fields(store):
    quizzes = store.open("quizzes", QUIZ_SCHEMA)
    with pytest.raises(ValidationError) as exc:
        quizzes.insert({"title": "t", "category": "love", "content": "c", "secret": 1})
    assert exc.value.fields == ("secret",)


def test_model_validation_reports_fields(store):
    quizzes = store.open("quizzes", QUIZ_SCHEMA)
    with pytest.raises(ValidationError) as exc:
        quizzes.insert({"title": "t", "category": "love", "content": "c", "imageUrl": 123})
    assert exc.value.fields == ("imageUrl",)

    with pytest.raises(ValidationError) as exc:
        quizzes.insert({"title": "t", "category": "x" * 51, "content": "c"})
    assert exc.value.fields == ("category",)
    assert len(quizzes) == 0


def test_quiz_schema_round_trip(store):
    quizzes = store.open("quizzes", QUIZ_SCHEMA)
    rec = quizzes.insert({"title": "Love style", "category": "love", "content": "Q1..."})
    assert rec["views"] == 0
    assert rec["imageUrl"] is None

    updated = quizzes.update(rec["id"], {"imageUrl": "/uploads/banner.png"})
    assert updated["imageUrl"] == "/uploads/banner.png"
    assert quizzes.increment_counter(rec["id"], "views") == 1


def test_store_maintained_counters_cannot_be_seeded():
    schema = CollectionSchema(required=("title",), defaults={"views": 0}, counters=("views",), seed_counters=False)
    for views in (-3, 0, 1_000_000):
        with pytest.raises(ValidationError) as exc:
            schema.prepare_insert({"title": "t", "views": views})
        assert exc.value.fields == ("views",)
    assert schema.prepare_insert({"title": "t"}) == {"title": "t", "views": 0}


def test_quiz_views_start_at_zero(store):
    quizzes = store.open("quizzes", QUIZ_SCHEMA)
    with pytest.raises(ValidationError) as exc:
        quizzes.insert({"title": "t", "category": "love", "content": "c", "views": 1_000_000})
    assert exc.value.fields == ("views",)
    assert len(quizzes) == 0


def test_image_schema(store):
    images = store.open("images", IMAGE_SCHEMA)
    with pytest.raises(ValidationError) as exc:
        images.insert({"title": "no url"})
    assert exc.value.fields == ("url",)

    rec = images.insert({"url": "/uploads/a.png"})
    assert rec["title"] == ""
    assert rec["link"] is None
    with pytest.raises(ValidationError):
        images.update(rec["id"], {"url": "/uploads/b.png"})
