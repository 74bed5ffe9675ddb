pytest_plugins = [
    "ordersync.tests.fixtures",
]
