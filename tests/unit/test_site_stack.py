import aws_cdk as core
import aws_cdk.assertions as assertions

from northgrave_site.auth_stack import AuthStack
from northgrave_site.site_stack import ProductionStack, StagingStack

PUBLIC_KEY = """-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAyWJOwHFwYUHk8iL7oxX4
-----END PUBLIC KEY-----
"""
ZONE = {'hosted_zone_id': 'Z123456', 'zone_name': 'northgrave.com'}
CACHING_DISABLED_ID = '4135ea2d-6df8-44a3-9df3-4b5a84be39ad'
ALL_VIEWER_EXCEPT_HOST_HEADER_ID = 'b689b0a8-53d0-40ab-baf2-68738e2966ac'


def make_app():
    app = core.App()
    auth_stack = AuthStack(app, 'northgrave-auth',
        public_key=PUBLIC_KEY,
        cookie_domain='.northgrave.com',
        site_domains=['northgrave.com', 'staging.northgrave.com']
    )
    return app, auth_stack


def cache_behaviors(template):
    distributions = template.find_resources('AWS::CloudFront::Distribution')
    assert len(distributions) == 1
    config = list(distributions.values())[0]['Properties']['DistributionConfig']
    return {behavior['PathPattern']: behavior for behavior in config.get('CacheBehaviors', [])}


def test_staging_distribution():
    app, auth_stack = make_app()
    stack = StagingStack(app, 'northgrave-staging', domain_name='staging.northgrave.com', auth_stack=auth_stack, **ZONE)
    template = assertions.Template.from_stack(stack)

    template.has_resource_properties('AWS::CloudFront::Distribution', {
        'DistributionConfig': assertions.Match.object_like({
            'Aliases': ['staging.northgrave.com'],
            'DefaultRootObject': 'index.html',
            'PriceClass': 'PriceClass_100',
            'HttpVersion': 'http2and3',
            'DefaultCacheBehavior': assertions.Match.object_like({
                'ViewerProtocolPolicy': 'redirect-to-https',
                'AllowedMethods': ['GET', 'HEAD'],
                'FunctionAssociations': [
                    assertions.Match.object_like({'EventType': 'viewer-request'})
                ]
            }),
            'CustomErrorResponses': assertions.Match.absent()
        })
    })
    template.has_resource_properties('AWS::CloudFront::Function', {
        'FunctionConfig': assertions.Match.object_like({'Runtime': 'cloudfront-js-2.0'})
    })
    template.has_resource_properties('AWS::CloudFront::OriginAccessControl', {
        'OriginAccessControlConfig': assertions.Match.object_like({
            'Name': 'staging.northgrave.com-oac',
            'SigningBehavior': 'always',
            'SigningProtocol': 'sigv4'
        })
    })
    template.has_resource_properties('AWS::CertificateManager::Certificate', {
        'DomainName': 'staging.northgrave.com',
        'SubjectAlternativeNames': assertions.Match.absent()
    })
    template.resource_count_is('AWS::Route53::RecordSet', 1)
    template.has_resource_properties('AWS::Route53::RecordSet', {
        'Name': 'staging.northgrave.com.',
        'Type': 'A',
        'HostedZoneId': 'Z123456'
    })
    template.has_resource_properties('AWS::S3::BucketPolicy', {
        'Bucket': 'staging.northgrave.com'
    })
    template.has_output('SiteUrl', {'Value': 'https://staging.northgrave.com'})


def test_vault_and_api_behaviors():
    app, auth_stack = make_app()
    stack = StagingStack(app, 'northgrave-staging', domain_name='staging.northgrave.com', auth_stack=auth_stack, **ZONE)
    behaviors = cache_behaviors(assertions.Template.from_stack(stack))

    assert set(behaviors) == {'/api/*', '/vault/*'}

    api = behaviors['/api/*']
    assert api['ViewerProtocolPolicy'] == 'redirect-to-https'
    assert len(api['AllowedMethods']) == 7
    assert set(api['AllowedMethods']) == {'GET', 'HEAD', 'OPTIONS', 'PUT', 'PATCH', 'POST', 'DELETE'}
    assert api['CachePolicyId'] == CACHING_DISABLED_ID
    assert api['OriginRequestPolicyId'] == ALL_VIEWER_EXCEPT_HOST_HEADER_ID
    # auth errors (401, 429) must reach the form unchanged
    assert 'FunctionAssociations' not in api

    vault = behaviors['/vault/*']
    assert vault['TrustedKeyGroups']
    assert vault['FunctionAssociations'][0]['EventType'] == 'viewer-request'


def test_site_without_auth_has_no_extra_behaviors():
    app = core.App()
    stack = StagingStack(app, 'northgrave-staging', domain_name='staging.northgrave.com', **ZONE)
    template = assertions.Template.from_stack(stack)
    template.has_resource_properties('AWS::CloudFront::Distribution', {
        'DistributionConfig': assertions.Match.object_like({
            'CacheBehaviors': assertions.Match.absent()
        })
    })


def test_production_adds_www():
    app, auth_stack = make_app()
    stack = ProductionStack(app, 'northgrave-production', domain_name='northgrave.com', auth_stack=auth_stack, **ZONE)
    template = assertions.Template.from_stack(stack)

    template.has_resource_properties('AWS::CloudFront::Distribution', {
        'DistributionConfig': assertions.Match.object_like({
            'Aliases': ['northgrave.com', 'www.northgrave.com']
        })
    })
    template.has_resource_properties('AWS::CertificateManager::Certificate', {
        'DomainName': 'northgrave.com',
        'SubjectAlternativeNames': ['www.northgrave.com']
    })
    template.resource_count_is('AWS::Route53::RecordSet', 2)
    template.has_resource_properties('AWS::Route53::RecordSet', {
        'Name': 'www.northgrave.com.',
        'Type': 'A'
    })
    template.has_output('DistributionId', {})
    template.has_output('BucketName', {'Value': 'northgrave.com'})
