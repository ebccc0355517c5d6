"""Tests for the REST handlers."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from document_management.api.rest import DocumentManagementRoutes, _build_response
from document_management.core.errors import GeneralError
from document_management.models.codes import DocumentCode
from document_management.models.vertex import Vertex
from document_management.service import DocumentManagementService

BILL_OF_LADING = DocumentCode.BILL_OF_LADING.value


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def event(
    method: str,
    resource: str,
    path_parameters=None,
    query=None,
    body=None,
) -> dict:
    return {
        "httpMethod": method,
        "resource": resource,
        "path": resource,
        "pathParameters": path_parameters,
        "queryStringParameters": query,
        "body": json.dumps(body) if body is not None else None,
        "requestContext": {"authorizer": {"userIdentity": "user-1", "nodeIdentity": "node-1"}},
    }


@pytest.fixture
def routes(service):
    return DocumentManagementRoutes(service)


async def create_document(routes, content: bytes = b"Hello World", **extra) -> str:
    response = await routes.create(
        event(
            "POST",
            "/documents",
            body={
                "documentId": "doc-1",
                "documentIdFormat": "bol",
                "documentCode": BILL_OF_LADING,
                "blob": b64(content),
                **extra,
            },
        )
    )
    assert response["statusCode"] == 201
    return response["headers"]["Location"]


class TestBuildResponse:
    """Tests for _build_response."""

    def test_json_body(self):
        response = _build_response(200, {"a": 1})
        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"a": 1}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_empty_body(self):
        response = _build_response(204, extra_headers={"Location": "x"})
        assert response["body"] == ""
        assert response["headers"]["Location"] == "x"


class TestDocumentRoutes:
    """Tests for DocumentManagementRoutes."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, routes):
        identifier = await create_document(routes)

        response = await routes.get(event("GET", "/documents/{id}", {"id": identifier}))
        assert response["statusCode"] == 200

        body = json.loads(response["body"])
        assert body["type"] == "DocumentList"
        assert body["@context"][0] == "https://schema.twindev.org/documents/"
        assert body["documents"][0]["id"] == "doc-1"
        assert body["documents"][0]["documentRevision"] == 0
        assert body["documents"][0]["userIdentity"] == "user-1"

    @pytest.mark.asyncio
    async def test_get_with_blob_data(self, routes):
        identifier = await create_document(routes)
        response = await routes.get(
            event(
                "GET",
                "/documents/{id}",
                {"id": identifier},
                {"includeBlobStorageData": "true"},
            )
        )
        body = json.loads(response["body"])
        assert body["documents"][0]["blobStorageEntry"]["blob"] == b64(b"Hello World")

    @pytest.mark.asyncio
    async def test_update_then_get_history(self, routes):
        identifier = await create_document(routes)
        response = await routes.update(
            event("PUT", "/documents/{id}", {"id": identifier}, body={"blob": b64(b"Hello World2")})
        )
        assert response["statusCode"] == 204

        response = await routes.get(
            event("GET", "/documents/{id}", {"id": identifier}, {"pageSize": "1"})
        )
        document = json.loads(response["body"])["documents"][0]
        assert document["documentRevision"] == 1
        assert [r["documentRevision"] for r in document["revisions"]] == [0]

    @pytest.mark.asyncio
    async def test_set_on_vertex(self, routes, graph):
        container_id = await graph.create(Vertex())
        response = await routes.set(
            event(
                "PUT",
                "/vertices/{containerId}/documents",
                {"containerId": container_id},
                body={"documentId": "doc-9", "documentCode": BILL_OF_LADING, "blob": b64(b"x")},
            )
        )
        assert response["statusCode"] == 201
        assert response["headers"]["Location"] == f"{container_id}:705:doc-9:0"

    @pytest.mark.asyncio
    async def test_remove_and_get_revision(self, routes):
        identifier = await create_document(routes)
        response = await routes.remove_revision(
            event(
                "DELETE",
                "/documents/{id}/revisions/{revision}",
                {"id": identifier, "revision": "0"},
            )
        )
        assert response["statusCode"] == 204

        missing = await routes.get_revision(
            event("GET", "/documents/{id}/revisions/{revision}", {"id": identifier, "revision": "0"})
        )
        assert missing["statusCode"] == 404

        shown = await routes.get_revision(
            event(
                "GET",
                "/documents/{id}/revisions/{revision}",
                {"id": identifier, "revision": "0"},
                {"includeRemoved": "true"},
            )
        )
        assert shown["statusCode"] == 200
        assert "dateDeleted" in json.loads(shown["body"])

    @pytest.mark.asyncio
    async def test_query(self, routes):
        identifier = await create_document(routes)
        container_id = identifier.rsplit(":", 3)[0]

        response = await routes.query(
            event(
                "GET",
                "/vertices/{containerId}/documents",
                {"containerId": container_id},
                {"documentCodes": BILL_OF_LADING, "includeMostRecentRevisions": "true"},
            )
        )
        assert response["statusCode"] == 200
        assert [d["id"] for d in json.loads(response["body"])["documents"]] == ["doc-1"]

    @pytest.mark.asyncio
    async def test_find_vertices(self, routes):
        await create_document(routes)
        response = await routes.find_vertices(
            event("GET", "/vertices", query={"documentId": "doc-1"})
        )
        assert response["statusCode"] == 200
        assert len(json.loads(response["body"])["vertices"]) == 1

    @pytest.mark.asyncio
    async def test_handle_dispatches(self, routes):
        identifier = await create_document(routes)
        response = await routes.handle(event("GET", "/documents/{id}", {"id": identifier}))
        assert response["statusCode"] == 200

    @pytest.mark.asyncio
    async def test_handle_unknown_route(self, routes):
        response = await routes.handle(event("PATCH", "/documents/{id}", {"id": "x"}))
        assert response["statusCode"] == 404


class TestErrorMapping:
    """Errors map onto status codes."""

    @pytest.mark.asyncio
    async def test_invalid_identifier_is_bad_request(self, routes):
        response = await routes.get(event("GET", "/documents/{id}", {"id": "bad"}))
        assert response["statusCode"] == 400
        assert json.loads(response["body"])["reason"] == "invalidDocumentId"

    @pytest.mark.asyncio
    async def test_invalid_cursor_is_bad_request(self, routes):
        identifier = await create_document(routes)
        response = await routes.get(
            event("GET", "/documents/{id}", {"id": identifier}, {"cursor": "abc"})
        )
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_unknown_container_is_not_found(self, routes):
        response = await routes.get(
            event("GET", "/documents/{id}", {"id": "aig:missing:705:doc-1"})
        )
        assert response["statusCode"] == 404

    @pytest.mark.asyncio
    async def test_bad_boolean_is_bad_request(self, routes):
        identifier = await create_document(routes)
        response = await routes.get(
            event("GET", "/documents/{id}", {"id": identifier}, {"includeRemoved": "maybe"})
        )
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_bad_base64_is_bad_request(self, routes):
        response = await routes.create(
            event(
                "POST",
                "/documents",
                body={"documentId": "doc-1", "documentCode": BILL_OF_LADING, "blob": "!!!"},
            )
        )
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_missing_field_is_bad_request(self, routes):
        response = await routes.create(
            event("POST", "/documents", body={"documentCode": BILL_OF_LADING, "blob": b64(b"x")})
        )
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_invalid_json_is_bad_request(self, routes):
        request = event("POST", "/documents")
        request["body"] = "{not json"
        response = await routes.create(request)
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_general_error_is_server_error(self):
        service = MagicMock(spec=DocumentManagementService)
        service.get = AsyncMock(side_effect=GeneralError("getFailed"))
        routes = DocumentManagementRoutes(service)

        response = await routes.get(event("GET", "/documents/{id}", {"id": "aig:abc:705:doc-1"}))
        assert response["statusCode"] == 500
        assert json.loads(response["body"])["reason"] == "getFailed"

    @pytest.mark.asyncio
    async def test_malformed_base64_body_is_bad_request(self, routes):
        request = event("POST", "/documents")
        request["body"] = "%%%not-b64"
        request["isBase64Encoded"] = True
        response = await routes.handle(request)
        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_non_utf8_body_is_bad_request(self, routes):
        request = event("POST", "/documents")
        request["body"] = b64(b"\xff\xfe\xfd")
        request["isBase64Encoded"] = True
        response = await routes.handle(request)
        assert response["statusCode"] == 400

    @pytest.mark.asyncio
    async def test_base64_body_is_accepted(self, routes):
        request = event(
            "POST",
            "/documents",
            body={"documentId": "doc-1", "documentCode": BILL_OF_LADING, "blob": b64(b"x")},
        )
        request["body"] = b64(request["body"].encode("utf-8"))
        request["isBase64Encoded"] = True
        response = await routes.handle(request)
        assert response["statusCode"] == 201

    @pytest.mark.asyncio
    async def test_unexpected_error_is_server_error(self):
        service = MagicMock(spec=DocumentManagementService)
        service.get = AsyncMock(side_effect=KeyError("boom"))
        routes = DocumentManagementRoutes(service)

        response = await routes.get(event("GET", "/documents/{id}", {"id": "aig:abc:705:doc-1"}))
        assert response["statusCode"] == 500
        assert json.loads(response["body"])["error"] == "INTERNAL_ERROR"
