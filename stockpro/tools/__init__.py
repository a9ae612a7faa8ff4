from . import dynamodb_tool, local_storage
