import re

from fastapi import status
from fastapi.testclient import TestClient

from retail_api.config.settings import Settings
from retail_api.main import create_app
from tests.consts import SAMPLE_CUSTOMER, SAMPLE_PRODUCT, TEST_IMAGE_CONTENT

TEST_FILE_PATH = "terms.txt"
TEST_FILE_CONTENT = b"Payment due within 30 days."
TEST_FILE_CONTENT_TYPE = "text/plain"


def test__health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "ok"
    assert body["deployment_mode"] == "local-dev"
    assert body["ready"] is True


def test__customers__create_get_update_delete(client: TestClient):
    response = client.post("/v1/customers", json=SAMPLE_CUSTOMER)
    assert response.status_code == status.HTTP_201_CREATED
    customer_id = response.json()["id"]

    response = client.get(f"/v1/customers/{customer_id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["FirstName"] == "Thandi"
    assert response.json()["RowKey"] == customer_id

    response = client.put(f"/v1/customers/{customer_id}", json={**SAMPLE_CUSTOMER, "last_name": "Dlamini"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["LastName"] == "Dlamini"

    assert client.delete(f"/v1/customers/{customer_id}").status_code == status.HTTP_204_NO_CONTENT
    assert client.delete(f"/v1/customers/{customer_id}").status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/v1/customers/{customer_id}").status_code == status.HTTP_404_NOT_FOUND


def test__customers__update_missing_is_not_found(client: TestClient):
    response = client.put("/v1/customers/does-not-exist", json=SAMPLE_CUSTOMER)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test__customers__list_is_paginated(client: TestClient):
    for i in range(7):
        client.post("/v1/customers", json={**SAMPLE_CUSTOMER, "first_name": f"Customer {i}"})

    first = client.get("/v1/customers").json()
    second = client.get("/v1/customers", params={"page": 2}).json()

    assert len(first["items"]) == 5
    assert [c["FirstName"] for c in second["items"]] == ["Customer 5", "Customer 6"]
    assert second["total_count"] == 7
    assert second["total_pages"] == 2


def test__products__create_and_search(client: TestClient):
    client.post("/v1/products", json=SAMPLE_PRODUCT)
    client.post("/v1/products", json={**SAMPLE_PRODUCT, "name": "Office Chair", "description": "Mesh back", "category": "Furniture"})

    response = client.get("/v1/products", params={"search": "furniture"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [p["Name"] for p in body["items"]] == ["Office Chair"]
    assert body["search"] == "furniture"
    assert body["items"][0]["ProductID"] == body["items"][0]["RowKey"]


def test__products__price_out_of_range_is_rejected(client: TestClient):
    response = client.post("/v1/products", json={**SAMPLE_PRODUCT, "price": 10001})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert client.get("/v1/products").json()["total_count"] == 0


def test__product_images__upload_and_list(client: TestClient):
    response = client.post(
        "/v1/product-images",
        files={"file": ("lamp.jpg", TEST_IMAGE_CONTENT, "image/jpeg")},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["file_name"] == "lamp.jpg"
    assert client.get("/v1/product-images").json()["items"] == ["lamp.jpg"]


def test__product_images__only_images_are_accepted(client: TestClient):
    response = client.post(
        "/v1/product-images",
        files={"file": ("notes.txt", b"not a picture", "text/plain")},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Only image files are allowed."
    assert client.get("/v1/product-images").json()["items"] == []


def test__product_images__missing_boundary(client: TestClient):
    response = client.post(
        "/v1/product-images",
        content=TEST_IMAGE_CONTENT,
        headers={"Content-Type": "image/jpeg"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Missing content-type boundary."


def test__queue__enqueue_and_peek(client: TestClient):
    for message in ("A", "B", "C"):
        response = client.post("/v1/queue/messages", json={"message": message})
        assert response.status_code == status.HTTP_201_CREATED

    response = client.get("/v1/queue/messages")

    assert response.json()["items"] == ["A", "B", "C"]
    # peeking leaves the messages in place
    assert client.get("/v1/queue/messages").json()["items"] == ["A", "B", "C"]


def test__queue__blank_message_is_rejected(client: TestClient):
    response = client.post("/v1/queue/messages", json={"message": "  "})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test__files__upload_and_list(client: TestClient):
    response = client.post(
        "/v1/files",
        files={"file": (TEST_FILE_PATH, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["size"] == len(TEST_FILE_CONTENT)
    assert client.get("/v1/files").json()["items"] == [TEST_FILE_PATH]


def test__function__add_customer_json(client: TestClient):
    response = client.post(
        "/api/AddCustomer",
        json={
            "firstName": "Sipho",
            "lastName": "Mokoena",
            "email": "sipho@example.com",
            "phoneNumber": "011 555 0123",
            "address": "4 Main Road, Johannesburg",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["firstName"] == "Sipho"
    assert client.get(f"/v1/customers/{body['id']}").status_code == status.HTTP_200_OK


def test__function__add_customer_form(client: TestClient):
    response = client.post(
        "/api/AddCustomer",
        data={
            "firstName": "Lerato",
            "lastName": "Khumalo",
            "email": "lerato@example.com",
            "phoneNumber": "031 555 0456",
            "address": "9 Beach Road, Durban",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == "lerato@example.com"


def test__function__add_customer_missing_field(client: TestClient):
    response = client.post("/api/AddCustomer", json={"firstName": "Sipho"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert client.get("/v1/customers").json()["total_count"] == 0


def test__function__queue_message_plain_text(client: TestClient):
    client.post("/api/QueueMessage", json={"message": "order-1"})
    response = client.post("/api/QueueMessage", content="order-2", headers={"Content-Type": "text/plain"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["AddedMessage"] == "order-2"
    assert body["PeekedMessages"] == ["order-1", "order-2"]
    assert body["TotalPeeked"] == 2


def test__function__upload_blob(client: TestClient):
    response = client.post(
        "/api/UploadBlob",
        headers={"ProductId": "p-7"},
        files={"file": ("lamp.jpg", TEST_IMAGE_CONTENT, "image/jpeg")},
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["productId"] == "p-7"
    assert re.fullmatch(r"p-7_[0-9a-f-]{36}_lamp\.jpg", body["fileName"])
    assert client.get("/v1/product-images").json()["items"] == [body["fileName"]]


def test__function__upload_blob_without_product_id(client: TestClient):
    response = client.post(
        "/api/UploadBlob",
        files={"file": ("lamp.jpg", TEST_IMAGE_CONTENT, "image/jpeg")},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Product ID is required in header."


def test__function__upload_file(client: TestClient):
    response = client.post("/api/UploadFile", content="Lease agreement", headers={"Content-Type": "text/plain"})

    assert response.status_code == status.HTTP_200_OK
    file_name = response.json()["fileName"]
    assert re.fullmatch(r"contract_\d{14}\.txt", file_name)
    assert client.get("/v1/files").json()["items"] == [file_name]


def test__missing_credentials_is_a_configuration_error():
    settings = Settings(deployment_mode="aws-prod", aws_access_key_id=None, aws_secret_access_key=None)
    app = create_app(settings=settings)

    with TestClient(app) as client:
        response = client.get("/v1/customers")
        health = client.get("/health").json()

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Storage configuration error."}
    assert health["ready"] is False
