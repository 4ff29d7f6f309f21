import os

# vault_auth reads its configuration at import time
os.environ.setdefault('AWS_REGION', 'us-east-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('VAULT_SECRET_ARN', 'arn:aws:secretsmanager:us-east-1:123456789012:secret:northgrave/vault-password')
os.environ.setdefault('SIGNING_KEY_SECRET_ARN', 'arn:aws:secretsmanager:us-east-1:123456789012:secret:northgrave/cloudfront-signing-key')
os.environ.setdefault('KEY_PAIR_ID', 'K2JCJMDEHXQW5F')
os.environ.setdefault('COOKIE_DOMAIN', '.northgrave.com')
os.environ.setdefault('COOKIE_TTL_HOURS', '24')
os.environ.setdefault('SIGNED_RESOURCE', 'https://*northgrave.com/vault/*')
os.environ.setdefault('ALLOWED_ORIGINS', 'https://northgrave.com,https://staging.northgrave.com')
