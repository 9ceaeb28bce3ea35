from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["overview"])

ENDPOINTS = {
	"auth": {
		"sign": "POST /api/user/sign",
		"login": "POST /api/user/login",
		"token": "POST /api/user/token",
		"profile": "GET /api/user/profile",
		"update": "PUT /api/user/update",
		"update_password": "PUT /api/user/update-password",
	},
	"grades": {
		"list": "GET /api/grade",
		"get": "GET /api/grade/:id",
		"create": "POST /api/grade (admin)",
		"update": "PUT /api/grade/:id (admin)",
		"delete": "DELETE /api/grade/:id (admin)",
	},
	"lessons": {
		"by_grade": "GET /api/lesson/grade/:grade_id",
		"get": "GET /api/lesson/:id",
		"create": "POST /api/lesson (admin, multipart)",
		"update": "PUT /api/lesson/:id (admin, multipart)",
		"delete": "DELETE /api/lesson/:id (admin)",
		"delete_audio": "DELETE /api/lesson/:id/audio/:audio_id (admin)",
		"stream_audio": "GET /api/lesson/:id/audio/:filename",
		"word_pairs": "POST /api/lesson/:id/word-pairs (admin)",
	},
	"categories": {
		"list": "GET /api/category/list",
		"get": "GET /api/category/:id",
		"create": "POST /api/category/create (admin)",
	},
	"tests": {
		"all": "GET /api/test/all",
		"get": "GET /api/test/:id",
		"create": "POST /api/test/create (admin)",
		"details": "POST /api/test-detail/create (admin)",
	},
	"vocabulary": {
		"by_lesson": "GET /api/vocabulary/lesson/:lesson_id",
		"by_grade": "GET /api/vocabulary/grade/:grade_id",
		"search": "GET /api/vocabulary/search?q=",
		"create": "POST /api/vocabulary/create (admin)",
	},
	"test_results": {
		"submit": "POST /api/test-result/submit",
		"mine": "GET /api/test-result/my-results",
		"statistics": "GET /api/test-result/statistics",
	},
	"topic_tests": {
		"by_grade": "GET /api/topic-test/grade/:grade_id",
		"by_lesson": "GET /api/topic-test/grade/:grade_id/lesson/:lesson_number",
		"evaluate": "POST /api/topic-test/evaluate",
		"results": "GET /api/topic-test/results",
	},
	"mock_tests": {
		"generate": "POST /api/mock-test/generate",
		"submit": "POST /api/mock-test/submit",
		"eligibility": "GET /api/mock-test/check-eligibility/:grade_id",
		"history": "GET /api/mock-test/history",
		"get": "GET /api/mock-test/:id",
	},
	"notifications": {
		"list": "GET /api/notifications",
		"read": "PUT /api/notifications/:id/read",
		"read_all": "PUT /api/notifications/read-all",
		"details": "GET /api/notifications/:id/details",
	},
	"admin": {
		"dashboard": "GET /api/admin/dashboard",
		"users": "GET /api/admin/users",
		"results": "GET /api/admin/results",
		"export": "GET /api/admin/export/results?format=csv",
	},
	"health": "GET /api/health",
}


@router.get("")
def get_overview():
	return {
		"status": "success",
		"message": "LessonHub API",
		"endpoints": ENDPOINTS,
	}
