from aws_cdk import (
    Stack,
    CfnOutput,
    aws_s3 as s3,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_certificatemanager as certificatemanager,
    aws_iam as iam,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

SPA_FALLBACK_CODE = """
function handler(event) {
    var request = event.request;
    var last = request.uri.split('/').pop();
    if (last.indexOf('.') === -1) {
        request.uri = '/index.html';
    }
    return request;
}
"""


class SiteStack(Stack):
    """Static site served from an existing bucket named after the domain.

    Given an auth stack, /api/* is routed to the vault auth API and /vault/*
    only serves requests that carry valid CloudFront signed cookies.
    """
    label = 'Site'
    include_www = False

    def __init__(self, scope: Construct, construct_id: str, *,
                 domain_name: str,
                 hosted_zone_id: str,
                 zone_name: str,
                 auth_stack=None,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        label = self.label
        domain_names = [domain_name]
        if self.include_www:
            domain_names.append(f'www.{domain_name}')

        self.bucket = s3.Bucket.from_bucket_name(self, f'{label}Bucket', domain_name)

        zone = route53.HostedZone.from_hosted_zone_attributes(self, 'HostedZone',
            hosted_zone_id=hosted_zone_id,
            zone_name=zone_name
        )

        # CloudFront certificates must live in us-east-1
        certificate = certificatemanager.Certificate(self, f'{label}Certificate',
            domain_name=domain_name,
            subject_alternative_names=domain_names[1:] or None,
            validation=certificatemanager.CertificateValidation.from_dns(zone)
        )

        oac = cloudfront.S3OriginAccessControl(self, f'{label}OAC',
            origin_access_control_name=f'{domain_name}-oac',
            description=f'OAC for Northgrave {label.lower()} site',
            signing=cloudfront.Signing.SIGV4_ALWAYS
        )

        site_origin = origins.S3BucketOrigin.with_origin_access_control(self.bucket,
            origin_access_control=oac
        )

        # extensionless page routes get the app shell; /api/* is not associated
        spa_fallback = cloudfront.Function(self, f'{label}SpaFallback',
            code=cloudfront.FunctionCode.from_inline(SPA_FALLBACK_CODE),
            runtime=cloudfront.FunctionRuntime.JS_2_0,
            comment='Serve index.html for extensionless paths'
        )
        site_functions = [
            cloudfront.FunctionAssociation(
                function=spa_fallback,
                event_type=cloudfront.FunctionEventType.VIEWER_REQUEST
            )
        ]

        additional_behaviors = {}
        if auth_stack is not None:
            additional_behaviors['/api/*'] = cloudfront.BehaviorOptions(
                origin=origins.RestApiOrigin(auth_stack.api),
                allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
                origin_request_policy=cloudfront.OriginRequestPolicy.ALL_VIEWER_EXCEPT_HOST_HEADER
            )
            additional_behaviors['/vault/*'] = cloudfront.BehaviorOptions(
                origin=site_origin,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
                trusted_key_groups=[auth_stack.key_group],
                function_associations=site_functions
            )

        self.distribution = cloudfront.Distribution(self, f'{label}Distribution',
            default_behavior=cloudfront.BehaviorOptions(
                origin=site_origin,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
                cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
                response_headers_policy=cloudfront.ResponseHeadersPolicy.SECURITY_HEADERS,
                function_associations=site_functions
            ),
            additional_behaviors=additional_behaviors,
            domain_names=domain_names,
            certificate=certificate,
            default_root_object='index.html',
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
            http_version=cloudfront.HttpVersion.HTTP2_AND_3,
            comment=f'Northgrave {label.lower()} site'
        )

        a_record_target = route53.RecordTarget.from_alias(route53_targets.CloudFrontTarget(self.distribution))
        route53.ARecord(self, f'{label}AliasRecord',
            zone=zone,
            target=a_record_target,
            record_name=domain_name
        )
        if self.include_www:
            route53.ARecord(self, 'WwwAliasRecord',
                zone=zone,
                target=a_record_target,
                record_name=f'www.{domain_name}'
            )

        # the bucket is imported, so CDK cannot grant the distribution read access itself
        bucket_policy = s3.BucketPolicy(self, f'{label}BucketPolicy', bucket=self.bucket)
        bucket_policy.document.add_statements(iam.PolicyStatement(
            actions=['s3:GetObject'],
            resources=[self.bucket.arn_for_objects('*')],
            principals=[iam.ServicePrincipal('cloudfront.amazonaws.com')],
            conditions={
                'StringEquals': {
                    'AWS:SourceArn': f'arn:aws:cloudfront::{self.account}:distribution/{self.distribution.distribution_id}'
                }
            }
        ))

        CfnOutput(self, 'BucketName',
            value=self.bucket.bucket_name,
            description=f'{label} S3 bucket name'
        )
        CfnOutput(self, 'DistributionId',
            value=self.distribution.distribution_id,
            description=f'{label} CloudFront distribution ID'
        )
        CfnOutput(self, 'SiteUrl',
            value=f'https://{domain_name}',
            description=f'{label} site URL'
        )


class StagingStack(SiteStack):
    label = 'Staging'


class ProductionStack(SiteStack):
    label = 'Production'
    include_www = True
