pytest_plugins = [
    "tests.fixtures.storage",
    "tests.fixtures.mocked_aws",
]
