import base64
import binascii
import json
import os
import logging


# Set up basic logging configuration
logging.basicConfig(level=logging.INFO)

DEFAULT_REGION = "eu-west-3"   # Paris


class currentMode:
    """
    Runtime configuration for the key layer.
    Loads the key store encryption key from `keys.json` and the AWS settings
    from the environment.
    """
    def __init__(self, myenv, keys_file=None):
        self.myenv = myenv
        self.keys_file = keys_file or os.environ.get("JWK_KMS_KEYS_FILE", "keys.json")

        # Load cryptographic key material from `keys.json`
        try:
            with open(self.keys_file) as f:
                keys = json.load(f)
        except (OSError, ValueError) as e:
            logging.error('%s file missing or corrupted.', self.keys_file)
            raise ValueError(f"Cannot read {self.keys_file}") from e

        self.key_store_key = None
        if keys.get("key_store_key"):
            try:
                self.key_store_key = base64.b64decode(keys["key_store_key"], validate=True)
            except binascii.Error as e:
                logging.error("key_store_key in %s is not valid base64", self.keys_file)
                raise ValueError("key_store_key must be base64") from e
            if len(self.key_store_key) not in (16, 24, 32):
                logging.error("key_store_key must decode to 16, 24 or 32 bytes")
                raise ValueError("key_store_key has an invalid length")

        self.region = os.environ.get("AWS_REGION", DEFAULT_REGION)
        self.database_url = os.environ.get("JWK_KMS_DATABASE_URL", "sqlite:///keys.db")
        self.audit_dir = os.environ.get("JWK_KMS_AUDIT_DIR")

        # Define runtime behavior depending on environment
        if self.myenv == 'aws':
            # instance credentials, no role to assume
            self.aws_profile = None
            self.role_arn = None
        elif self.myenv == 'local':
            self.aws_profile = os.environ.get("AWS_PROFILE")
            self.role_arn = os.environ.get("JWK_KMS_ROLE_ARN")
        else:
            logging.error('Invalid environment setting. Choose either "aws" or "local".')
            raise ValueError(f"Invalid environment: {myenv}")
