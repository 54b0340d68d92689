"""The gateway against DynamoDB, S3 and SQS, mocked with moto."""
import boto3
import pytest

from retail_api.adapters.queue import PEEK_FIRST_WAIT_SECONDS, SQSQueue
from retail_api.adapters.table import DynamoDBTable
from retail_api.services.gateway import StorageGateway
from tests.consts import (
    SAMPLE_CUSTOMER,
    SAMPLE_PRODUCT,
    TEST_BUCKET_NAME,
    TEST_CUSTOMERS_TABLE,
    TEST_IMAGE_CONTENT,
    TEST_QUEUE_NAME,
)


@pytest.mark.asyncio
async def test_initialize_creates_resources(aws_settings):
    gateway = StorageGateway.from_settings(aws_settings)

    await gateway.initialize()
    # a second run finds everything in place
    await gateway.initialize()

    dynamodb = boto3.client("dynamodb", region_name="us-east-1")
    assert TEST_CUSTOMERS_TABLE in dynamodb.list_tables()["TableNames"]
    s3 = boto3.client("s3", region_name="us-east-1")
    assert TEST_BUCKET_NAME in [bucket["Name"] for bucket in s3.list_buckets()["Buckets"]]
    sqs = boto3.client("sqs", region_name="us-east-1")
    assert sqs.get_queue_url(QueueName=TEST_QUEUE_NAME)["QueueUrl"]


@pytest.mark.asyncio
async def test_dynamodb_customer_and_product_crud(aws_settings):
    gateway = StorageGateway.from_settings(aws_settings)
    await gateway.initialize()
    assert isinstance(gateway.customers.table, DynamoDBTable)

    customer_id = await gateway.add_customer(SAMPLE_CUSTOMER)
    customer = await gateway.get_customer_by_id(customer_id)
    assert customer.last_name == "Nkosi"

    updated = await gateway.update_customer(customer_id, {**SAMPLE_CUSTOMER, "phone_number": "021 555 0199"})
    assert updated.phone_number == "021 555 0199"

    product_id = await gateway.add_product(SAMPLE_PRODUCT)
    product = await gateway.get_product_by_id(product_id)
    assert product.price == pytest.approx(349.99)
    assert [p.row_key for p in await gateway.list_products()] == [product_id]

    await gateway.delete_customer(customer_id)
    await gateway.delete_customer(customer_id)
    assert await gateway.get_customer_by_id(customer_id) is None
    assert await gateway.list_customers() == []


@pytest.mark.asyncio
async def test_dynamodb_stores_pascal_case_attributes(aws_settings):
    gateway = StorageGateway.from_settings(aws_settings)
    await gateway.initialize()

    product_id = await gateway.add_product(SAMPLE_PRODUCT)

    table = boto3.resource("dynamodb", region_name="us-east-1").Table(aws_settings.products_table_name)
    item = table.get_item(Key={"PartitionKey": "Products", "RowKey": product_id})["Item"]
    assert item["ProductID"] == product_id
    assert item["Name"] == "Desk Lamp"
    assert "Timestamp" in item
    assert "ETag" in item


@pytest.mark.asyncio
async def test_s3_upload_and_list(aws_settings):
    gateway = StorageGateway.from_settings(aws_settings)
    await gateway.initialize()

    uploaded = await gateway.upload_image("lamp.jpg", TEST_IMAGE_CONTENT, "image/jpeg")
    await gateway.upload_image("chair.jpg", b"chair")

    assert uploaded.url.endswith(f"/{TEST_BUCKET_NAME}/lamp.jpg")
    assert await gateway.list_blob_names() == ["chair.jpg", "lamp.jpg"]

    s3 = boto3.client("s3", region_name="us-east-1")
    obj = s3.get_object(Bucket=TEST_BUCKET_NAME, Key="lamp.jpg")
    assert obj["Body"].read() == TEST_IMAGE_CONTENT
    assert obj["ContentType"] == "image/jpeg"


@pytest.mark.asyncio
async def test_sqs_peek_leaves_messages_queued(aws_settings):
    gateway = StorageGateway.from_settings(aws_settings)
    await gateway.initialize()
    assert isinstance(gateway.queue, SQSQueue)

    for message in ("A", "B", "C"):
        await gateway.enqueue_message(message)

    assert await gateway.peek_messages(2) == ["A", "B"]
    assert await gateway.peek_messages(5) == ["A", "B", "C"]
    assert await gateway.peek_messages(5) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_file_share_is_the_mounted_directory(aws_settings, tmp_path):
    gateway = StorageGateway.from_settings(aws_settings)
    await gateway.initialize()

    await gateway.upload_file(b"terms", "terms.txt")

    assert (tmp_path / "efs" / "terms.txt").read_bytes() == b"terms"
    assert await gateway.list_file_names() == ["terms.txt"]


class StubSQSClient:
    """Hands out queued bodies one receive at a time and records every call."""

    def __init__(self, bodies):
        self.pending = [[{"Body": body, "ReceiptHandle": f"rh-{body}"}] for body in bodies]
        self.receive_calls = []
        self.restored = []

    def receive_message(self, **kwargs):
        self.receive_calls.append(kwargs)
        return {"Messages": self.pending.pop(0)} if self.pending else {}

    def change_message_visibility(self, **kwargs):
        self.restored.append((kwargs["ReceiptHandle"], kwargs["VisibilityTimeout"]))


@pytest.mark.asyncio
async def test_sqs_peek_long_polls_only_the_first_receive():
    sqs = StubSQSClient(["A", "B"])
    queue = SQSQueue(TEST_QUEUE_NAME, sqs, queue_url="https://sqs.example/queue")

    assert await queue.peek_messages(5) == ["A", "B"]

    waits = [call["WaitTimeSeconds"] for call in sqs.receive_calls]
    assert waits == [PEEK_FIRST_WAIT_SECONDS, 0, 0]
    assert sqs.restored == [("rh-A", 0), ("rh-B", 0)]
