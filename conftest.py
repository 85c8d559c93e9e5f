pytest_plugins = ["kiln.core.testing"]
