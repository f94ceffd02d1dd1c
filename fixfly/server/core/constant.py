"""Static server constants."""

PROJECT_NAME = "Fixfly Backend"
API_V1_STR = "/api/v1"
VERSION = "1.0.0"
