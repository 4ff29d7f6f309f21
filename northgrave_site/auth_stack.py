import json
import os

from aws_cdk import (
    Stack,
    CfnOutput, Duration,
    aws_apigateway as apigateway,
    aws_cloudfront as cloudfront,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
    aws_wafv2 as wafv2,
)
from constructs import Construct

FUNCTIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'functions')

COOKIE_TTL_HOURS = 24
RATE_LIMIT_PER_5_MINUTES = 100


class AuthStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, *,
                 public_key: str,
                 cookie_domain: str,
                 site_domains: list,
                 cryptography_layer_arn: str = None,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        allowed_origins = [f'https://{domain}' for domain in site_domains]

        vault_secret = secretsmanager.Secret(self, 'VaultPassword',
            secret_name='northgrave/vault-password',
            description='Shared password for Northgrave vault access',
            generate_secret_string=secretsmanager.SecretStringGenerator(
                secret_string_template=json.dumps({'password': 'CHANGE_ME'}),
                generate_string_key='generated',
                exclude_characters='"@/\\',
                password_length=32
            )
        )

        signing_key_secret = secretsmanager.Secret(self, 'SigningKey',
            secret_name='northgrave/cloudfront-signing-key',
            description='CloudFront signing key for vault cookies'
        )

        pub_key = cloudfront.PublicKey(self, 'VaultPublicKey',
            encoded_key=public_key,
            comment='Verifies vault cookies'
        )

        self.key_group = cloudfront.KeyGroup(self, 'VaultKeyGroup',
            items=[pub_key]
        )

        layers = []
        if cryptography_layer_arn:
            layers.append(lambda_.LayerVersion.from_layer_version_arn(self, 'CryptographyLayer', cryptography_layer_arn))

        auth_function = lambda_.Function(self, 'VaultAuthFunction',
            runtime=lambda_.Runtime.PYTHON_3_12,
            code=lambda_.Code.from_asset(FUNCTIONS_DIR),
            handler='vault_auth.lambda_handler',
            timeout=Duration.seconds(10),
            memory_size=256,
            environment={
                'VAULT_SECRET_ARN': vault_secret.secret_arn,
                'SIGNING_KEY_SECRET_ARN': signing_key_secret.secret_arn,
                'KEY_PAIR_ID': pub_key.public_key_id,
                'COOKIE_DOMAIN': cookie_domain,
                'COOKIE_TTL_HOURS': str(COOKIE_TTL_HOURS),
                'SIGNED_RESOURCE': f'https://*{cookie_domain.lstrip(".")}/vault/*',
                'ALLOWED_ORIGINS': ','.join(allowed_origins)
            },
            layers=layers,
            log_group=logs.LogGroup(self, 'VaultAuthLogGroup',
                retention=logs.RetentionDays.ONE_MONTH
            )
        )

        vault_secret.grant_read(auth_function)
        signing_key_secret.grant_read(auth_function)

        self.api = apigateway.RestApi(self, 'VaultAuthApi',
            rest_api_name='Northgrave Vault Auth',
            description='Authentication API for Northgrave vault access',
            default_cors_preflight_options=apigateway.CorsOptions(
                allow_origins=allowed_origins,
                allow_methods=['POST', 'OPTIONS'],
                allow_headers=['Content-Type'],
                allow_credentials=True
            ),
            deploy_options=apigateway.StageOptions(
                stage_name='v1',
                throttling_burst_limit=50,
                throttling_rate_limit=100
            )
        )

        auth_resource = self.api.root.add_resource('api').add_resource('auth')
        auth_resource.add_method(
            'POST',
            apigateway.LambdaIntegration(auth_function, proxy=True),
            method_responses=[
                apigateway.MethodResponse(
                    status_code='200',
                    response_parameters={
                        'method.response.header.Set-Cookie': True,
                        'method.response.header.Access-Control-Allow-Origin': True,
                        'method.response.header.Access-Control-Allow-Credentials': True,
                    }
                ),
                apigateway.MethodResponse(status_code='400'),
                apigateway.MethodResponse(status_code='401'),
                apigateway.MethodResponse(status_code='429'),
            ]
        )

        web_acl = wafv2.CfnWebACL(self, 'AuthWafAcl',
            default_action=wafv2.CfnWebACL.DefaultActionProperty(allow={}),
            scope='REGIONAL',
            visibility_config=wafv2.CfnWebACL.VisibilityConfigProperty(
                cloud_watch_metrics_enabled=True,
                metric_name='NorthgraveAuthWaf',
                sampled_requests_enabled=True
            ),
            rules=[
                wafv2.CfnWebACL.RuleProperty(
                    name='RateLimitRule',
                    priority=1,
                    action=wafv2.CfnWebACL.RuleActionProperty(
                        block=wafv2.CfnWebACL.BlockActionProperty(
                            custom_response=wafv2.CfnWebACL.CustomResponseProperty(response_code=429)
                        )
                    ),
                    visibility_config=wafv2.CfnWebACL.VisibilityConfigProperty(
                        cloud_watch_metrics_enabled=True,
                        metric_name='RateLimitRule',
                        sampled_requests_enabled=True
                    ),
                    statement=wafv2.CfnWebACL.StatementProperty(
                        rate_based_statement=wafv2.CfnWebACL.RateBasedStatementProperty(
                            limit=RATE_LIMIT_PER_5_MINUTES,
                            # behind CloudFront the source IP is the edge server
                            aggregate_key_type='FORWARDED_IP',
                            forwarded_ip_config=wafv2.CfnWebACL.ForwardedIPConfigurationProperty(
                                header_name='X-Forwarded-For',
                                fallback_behavior='MATCH'
                            )
                        )
                    )
                )
            ]
        )

        wafv2.CfnWebACLAssociation(self, 'WafApiAssociation',
            resource_arn=self.api.deployment_stage.stage_arn,
            web_acl_arn=web_acl.attr_arn
        )

        CfnOutput(self, 'ApiEndpoint',
            value=self.api.url,
            description='Vault auth API endpoint'
        )

        CfnOutput(self, 'VaultSecretArn',
            value=vault_secret.secret_arn,
            description='ARN for vault password secret'
        )
