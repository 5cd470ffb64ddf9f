import httpx

from app.services.verification_client import VerificationClient


def _client(handler) -> VerificationClient:
    return VerificationClient(base_url="http://ai.test/", transport=httpx.MockTransport(handler))


async def test_verify_returns_service_verdict():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json={
            "success": True,
            "match": True,
            "predicted_student_id": 12,
            "predicted_student": {"id": 12, "student_id": "2025-012", "firstname": "Ana", "surname": "Santos"},
            "score": 0.91,
            "decision": "match",
            "message": "Signature matched",
        })

    result = await _client(handler).verify(b"img", filename="s.png", session_id=5)

    assert seen["path"] == "/verify"
    assert b'name="session_id"' in seen["body"]
    assert b'filename="s.png"' in seen["body"]
    assert result.success and result.match
    assert result.predicted_student_id == 12
    assert result.predicted_student.student_id == "2025-012"


async def test_verify_http_error_is_failure_shaped():
    def handler(request):
        return httpx.Response(500, json={"detail": "model not loaded"})

    result = await _client(handler).verify(b"img")

    assert result.success is False
    assert result.match is False
    assert result.decision == "error"
    assert result.message == "Failed to verify signature"
    assert "model not loaded" in result.error


async def test_verify_transport_error_is_failure_shaped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).verify(b"img")

    assert result.success is False
    assert result.decision == "error"
    assert "connection refused" in result.error


async def test_train_and_health():
    def handler(request):
        if request.url.path == "/train/3":
            return httpx.Response(200, json={
                "success": True,
                "message": "Training started",
                "profile": {"student_id": 3, "status": "training", "num_samples": 4},
            })
        return httpx.Response(200, json={"status": "healthy"})

    client = _client(handler)
    trained = await client.train(3)
    health = await client.health()

    assert trained.success
    assert trained.profile.num_samples == 4
    assert health == {"status": "healthy", "healthy": True}


async def test_train_failure():
    def handler(request):
        return httpx.Response(404, json={"message": "Student has no signatures"})

    trained = await _client(handler).train(9)

    assert trained.success is False
    assert "Student has no signatures" in trained.error
