import base64
import datetime
import hmac
import json
import os

import boto3
from botocore.signers import CloudFrontSigner
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding

REGION                 = os.environ.get('AWS_REGION', 'us-east-1')
vault_secret_arn       = os.environ['VAULT_SECRET_ARN']
signing_key_secret_arn = os.environ['SIGNING_KEY_SECRET_ARN']
key_pair_id            = os.environ['KEY_PAIR_ID']
cookie_domain          = os.environ['COOKIE_DOMAIN']
cookie_ttl_hours       = int(os.environ.get('COOKIE_TTL_HOURS', '24'))
signed_resource        = os.environ['SIGNED_RESOURCE']
allowed_origins        = [o.strip() for o in os.environ.get('ALLOWED_ORIGINS', '').split(',') if o.strip()]

secrets_client = boto3.client('secretsmanager', region_name=REGION)

INVALID_PASSWORD = 'Invalid password. Please try again.'
MISSING_PASSWORD = 'A password is required.'
COOKIE_NAMES = ['CloudFront-Policy', 'CloudFront-Signature', 'CloudFront-Key-Pair-Id']

cache = {}


def load_secret(secret_id, client):
    response = client.get_secret_value(SecretId=secret_id)
    return response['SecretString']


def vault_password():
    if 'vault_password' not in cache:
        secret = load_secret(vault_secret_arn, secrets_client)
        try:
            secret = json.loads(secret)['password']
        except (ValueError, KeyError, TypeError):
            # plain-string secret
            pass
        cache['vault_password'] = secret
    return cache['vault_password']


def private_key():
    if 'private_key' not in cache:
        pem = load_secret(signing_key_secret_arn, secrets_client)
        cache['private_key'] = serialization.load_pem_private_key(
            pem.encode('utf-8'),
            password=None
        )
    return cache['private_key']


def rsa_signer(message):
    # CloudFront only accepts SHA1 signatures
    return private_key().sign(message, padding.PKCS1v15(), hashes.SHA1())


def url_safe_b64(data):
    return base64.b64encode(data).replace(b'+', b'-').replace(b'=', b'_').replace(b'/', b'~').decode('utf-8')


def check_password(candidate):
    return hmac.compare_digest(candidate.encode('utf-8'), vault_password().encode('utf-8'))


def signed_cookies(now=None):
    now = now or datetime.datetime.now(datetime.timezone.utc)
    expire_date = now + datetime.timedelta(hours=cookie_ttl_hours)
    cloudfront_signer = CloudFrontSigner(key_pair_id, rsa_signer)
    policy = cloudfront_signer.build_policy(signed_resource, expire_date).encode('utf-8')
    values = [
        url_safe_b64(policy),
        url_safe_b64(rsa_signer(policy)),
        key_pair_id
    ]
    attributes = f'Domain={cookie_domain}; Path=/; Max-Age={cookie_ttl_hours * 3600}; Secure; HttpOnly; SameSite=Lax'
    return [f'{name}={value}; {attributes}' for name, value in zip(COOKIE_NAMES, values)]


def parse_password(event):
    body = event.get('body') or ''
    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body, validate=True).decode('utf-8')
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        # binascii.Error is a ValueError
        return None
    if not isinstance(data, dict):
        return None
    password = data.get('password')
    if not isinstance(password, str) or not password:
        return None
    return password


def request_origin(event):
    headers = event.get('headers') or {}
    for key in headers:
        if key.lower() == 'origin':
            return headers[key]
    return None


def respond(status_code, body, origin, cookies=None):
    headers = {
        'Content-Type': 'application/json',
        'Access-Control-Allow-Credentials': 'true',
    }
    if origin in allowed_origins:
        headers['Access-Control-Allow-Origin'] = origin
        headers['Vary'] = 'Origin'
    response = {
        'statusCode': status_code,
        'headers': headers,
        'body': json.dumps(body) if body is not None else ''
    }
    if cookies:
        response['multiValueHeaders'] = {'Set-Cookie': cookies}
    return response


def lambda_handler(event, context):
    origin = request_origin(event)
    method = event.get('httpMethod', 'POST')
    if method == 'OPTIONS':
        response = respond(204, None, origin)
        response['headers']['Access-Control-Allow-Methods'] = 'POST, OPTIONS'
        response['headers']['Access-Control-Allow-Headers'] = 'Content-Type'
        return response
    if method != 'POST':
        return respond(405, {'message': f'{method} not allowed'}, origin)
    password = parse_password(event)
    if password is None:
        print(f'rejected: malformed body {origin=}')
        return respond(400, {'message': MISSING_PASSWORD}, origin)
    if not check_password(password):
        print(f'rejected: wrong password {origin=}')
        return respond(401, {'message': INVALID_PASSWORD}, origin)
    cookies = signed_cookies()
    print(f'granted: vault cookies for {cookie_domain} {origin=}')
    return respond(200, {'message': 'Access granted'}, origin, cookies)
