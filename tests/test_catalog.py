"""Grades, lessons, categories, tests, test details and vocabulary."""

from __future__ import annotations

from lessonhub.errors import StorageError
from lessonhub.models import Lesson, TestDetail
from lessonhub.routers import lesson as lesson_router
from lessonhub.storage import upload_root


def _create_grade(client, headers, name="Elementary"):
	return client.post("/api/grade", json={"name": name, "description": "A1"}, headers=headers).json()["data"]


def _create_lesson(client, headers, grade_id, title, **form):
	return client.post("/api/lesson", data={"title": title, "grade_id": grade_id, **form}, headers=headers)


def test_grade_lifecycle(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	dup = client.post("/api/grade", json={"name": "Elementary"}, headers=admin_headers)
	assert dup.status_code == 400

	listed = client.get("/api/grade", headers=admin_headers).json()["data"]
	assert [g["name"] for g in listed] == ["Elementary"]

	renamed = client.put(f"/api/grade/{grade['id']}", json={"name": "Starter"}, headers=admin_headers)
	assert renamed.json()["data"]["name"] == "Starter"

	assert client.delete(f"/api/grade/{grade['id']}", headers=admin_headers).status_code == 200
	assert client.get(f"/api/grade/{grade['id']}", headers=admin_headers).status_code == 404


def test_grade_with_lessons_cannot_be_deleted(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	_create_lesson(client, admin_headers, grade["id"], "Greetings")

	resp = client.delete(f"/api/grade/{grade['id']}", headers=admin_headers)
	assert resp.status_code == 400


def test_lessons_get_sequential_order_numbers(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	first = _create_lesson(client, admin_headers, grade["id"], "Greetings").json()["data"]
	second = _create_lesson(client, admin_headers, grade["id"], "Numbers").json()["data"]
	clash = _create_lesson(client, admin_headers, grade["id"], "Colours", order_number="2")

	assert (first["order_number"], second["order_number"]) == (1, 2)
	assert clash.status_code == 400

	detail = client.get(f"/api/grade/{grade['id']}", headers=admin_headers).json()["data"]
	assert [l["title"] for l in detail["lessons"]] == ["Greetings", "Numbers"]


def test_lesson_audio_upload_and_stream(client, db, admin_headers):
	grade = _create_grade(client, admin_headers)
	resp = client.post(
		"/api/lesson",
		data={"title": "Listening 1", "grade_id": grade["id"]},
		files=[("audio_files", ("track.mp3", b"ID3fake-audio", "audio/mpeg"))],
		headers=admin_headers,
	)
	assert resp.status_code == 201
	lesson = resp.json()["data"]
	audio = lesson["audio_files"][0]
	assert audio["original_name"] == "track.mp3"
	assert audio["download_url"].endswith(f"/api/lesson/{lesson['id']}/audio/{audio['filename']}")

	streamed = client.get(f"/api/lesson/{lesson['id']}/audio/{audio['filename']}")
	assert streamed.status_code == 200
	assert streamed.content == b"ID3fake-audio"

	removed = client.delete(f"/api/lesson/{lesson['id']}/audio/{audio['id']}", headers=admin_headers)
	assert removed.status_code == 200
	assert client.get(f"/api/lesson/{lesson['id']}/audio/{audio['filename']}").status_code == 404


def test_lesson_rejects_non_audio_upload(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	resp = client.post(
		"/api/lesson",
		data={"title": "Bad upload", "grade_id": grade["id"]},
		files=[("audio_files", ("notes.txt", b"hello", "text/plain"))],
		headers=admin_headers,
	)
	assert resp.status_code == 400


def test_word_pairs_are_appended(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	lesson = _create_lesson(client, admin_headers, grade["id"], "Family").json()["data"]

	client.post(f"/api/lesson/{lesson['id']}/word-pairs", json={"en": "mother", "uz": "ona"}, headers=admin_headers)
	resp = client.post(f"/api/lesson/{lesson['id']}/word-pairs", json={"en": "father", "uz": "ota"}, headers=admin_headers)

	assert resp.json()["data"]["word_pairs"] == [{"en": "mother", "uz": "ona"}, {"en": "father", "uz": "ota"}]


def test_test_and_details(client, db, admin_headers):
	grade = _create_grade(client, admin_headers)
	lesson = _create_lesson(client, admin_headers, grade["id"], "Weather").json()["data"]
	category = client.post("/api/category/create", json={"title": "Listening"}, headers=admin_headers).json()["data"]

	test = client.post(
		"/api/test/create",
		json={"title": "Weather quiz", "category_id": category["id"], "lesson_id": lesson["id"], "type": "listening"},
		headers=admin_headers,
	).json()["data"]
	assert test["grade_id"] == grade["id"]
	assert test["category_title"] == "Listening"

	detail = client.post(
		"/api/test-detail/create",
		json={"condition": "Listen and repeat", "text": "It is sunny", "parent": {"kind": "test", "id": test["id"]}},
		headers=admin_headers,
	)
	assert detail.status_code == 201

	fetched = client.get(f"/api/test/{test['id']}").json()["data"]
	assert [d["text"] for d in fetched["test_items"]] == ["It is sunny"]

	client.delete(f"/api/test/{test['id']}", headers=admin_headers)
	assert db.query(TestDetail).count() == 0


def test_detail_parent_must_be_a_test(client, admin_headers):
	unknown_kind = client.post(
		"/api/test-detail/create",
		json={"condition": "c", "text": "t", "parent": {"kind": "lesson", "id": "x"}},
		headers=admin_headers,
	)
	missing_test = client.post(
		"/api/test-detail/create",
		json={"condition": "c", "text": "t", "parent": {"kind": "test", "id": "missing"}},
		headers=admin_headers,
	)
	assert unknown_kind.status_code == 400
	assert missing_test.status_code == 404


def test_vocabulary_crud_and_search(client, db, admin_headers):
	grade = _create_grade(client, admin_headers)
	lesson = _create_lesson(client, admin_headers, grade["id"], "Animals").json()["data"]
	for order, (word, definition) in enumerate([("cat", "a small pet"), ("Caterpillar", "a larva"), ("dog", "a loyal pet")]):
		resp = client.post(
			"/api/vocabulary/create",
			json={
				"lesson_id": lesson["id"],
				"word": word,
				"definition": definition,
				"part_of_speech": "noun",
				"example": f"I see a {word}.",
				"synonyms": [" kitty ", ""] if word == "cat" else [],
				"order": order,
			},
			headers=admin_headers,
		)
		assert resp.status_code == 201

	by_lesson = client.get(f"/api/vocabulary/lesson/{lesson['id']}").json()["data"]
	assert [v["word"] for v in by_lesson] == ["cat", "Caterpillar", "dog"]
	assert by_lesson[0]["synonyms"] == ["kitty"]
	assert by_lesson[0]["grade_id"] == grade["id"]

	found = client.get("/api/vocabulary/search", params={"q": "CAT"}).json()["data"]
	assert sorted(v["word"] for v in found) == ["Caterpillar", "cat"]
	pets = client.get("/api/vocabulary/search", params={"q": "pet"}).json()["data"]
	assert sorted(v["word"] for v in pets) == ["cat", "dog"]

	by_grade = client.get(f"/api/vocabulary/grade/{grade['id']}").json()["data"]
	assert by_grade[0]["lesson"]["title"] == "Animals"


def test_vocabulary_needs_existing_lesson(client, admin_headers):
	resp = client.post(
		"/api/vocabulary/create",
		json={"lesson_id": "nope", "word": "x", "definition": "y", "part_of_speech": "noun", "example": "z"},
		headers=admin_headers,
	)
	assert resp.status_code == 404


def test_lesson_order_is_unique_per_grade(db, grade):
	orders = [l.order_number for l in db.query(Lesson).filter(Lesson.grade_id == grade.id)]
	assert len(orders) == len(set(orders))


def _stored_files():
	return {p.name for p in upload_root().iterdir()}


def test_rejected_upload_leaves_no_files_behind(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	before = _stored_files()

	resp = client.post(
		"/api/lesson",
		data={"title": "Mixed upload", "grade_id": grade["id"]},
		files=[
			("audio_files", ("ok.mp3", b"ID3good-audio", "audio/mpeg")),
			("audio_files", ("bad.txt", b"not audio", "text/plain")),
		],
		headers=admin_headers,
	)

	assert resp.status_code == 400
	assert _stored_files() == before
	assert client.get(f"/api/lesson/grade/{grade['id']}", headers=admin_headers).json()["data"] == []


def test_rejected_update_upload_leaves_no_files_behind(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	lesson = _create_lesson(client, admin_headers, grade["id"], "Shopping").json()["data"]
	before = _stored_files()

	resp = client.put(
		f"/api/lesson/{lesson['id']}",
		data={"title": "Shopping 2"},
		files=[
			("audio_files", ("ok.wav", b"RIFFaudio", "audio/wav")),
			("audio_files", ("cover.png", b"\x89PNG", "image/png")),
		],
		headers=admin_headers,
	)

	assert resp.status_code == 400
	assert _stored_files() == before
	fetched = client.get(f"/api/lesson/{lesson['id']}", headers=admin_headers).json()["data"]
	assert fetched["title"] == "Shopping"
	assert fetched["audio_files"] == []


def test_failed_commit_removes_written_files(client, admin_headers, monkeypatch):
	grade = _create_grade(client, admin_headers)
	before = _stored_files()

	def broken_commit(db):
		db.rollback()
		raise StorageError("disk full")

	monkeypatch.setattr(lesson_router, "commit", broken_commit)
	resp = client.post(
		"/api/lesson",
		data={"title": "Unlucky", "grade_id": grade["id"]},
		files=[("audio_files", ("track.mp3", b"ID3audio", "audio/mpeg"))],
		headers=admin_headers,
	)

	assert resp.status_code == 500
	assert _stored_files() == before


def test_order_number_zero_is_rejected(client, admin_headers):
	grade = _create_grade(client, admin_headers)
	lesson = _create_lesson(client, admin_headers, grade["id"], "Days").json()["data"]

	created = _create_lesson(client, admin_headers, grade["id"], "Months", order_number="0")
	updated = client.put(f"/api/lesson/{lesson['id']}", data={"order_number": "0"}, headers=admin_headers)
	moved = client.put(f"/api/lesson/{lesson['id']}", data={"order_number": "5"}, headers=admin_headers)

	assert created.status_code == 400
	assert updated.status_code == 400
	assert moved.json()["data"]["order_number"] == 5
