#!/usr/bin/env python3
import os

import aws_cdk as cdk

from northgrave_site.auth_stack import AuthStack
from northgrave_site.config import load_cdk_params, read_public_key
from northgrave_site.site_stack import StagingStack, ProductionStack

params = load_cdk_params()

# CloudFront certificates must be issued in us-east-1
env = cdk.Environment(account=os.getenv('CDK_DEFAULT_ACCOUNT'), region='us-east-1')

app = cdk.App()

auth_stack = AuthStack(app, 'NorthgraveAuthStack',
    env=env,
    description='Northgrave Studios vault authentication',
    public_key=read_public_key(params),
    cookie_domain=params['cookie_domain'],
    site_domains=[params['production_domain'], params['staging_domain']],
    cryptography_layer_arn=params.get('cryptography_layer_arn')
)

StagingStack(app, 'NorthgraveStagingStack',
    env=env,
    description='Northgrave Studios staging environment',
    domain_name=params['staging_domain'],
    hosted_zone_id=params['hosted_zone_id'],
    zone_name=params['zone_name'],
    auth_stack=auth_stack
)

ProductionStack(app, 'NorthgraveProductionStack',
    env=env,
    description='Northgrave Studios production environment',
    domain_name=params['production_domain'],
    hosted_zone_id=params['hosted_zone_id'],
    zone_name=params['zone_name'],
    auth_stack=auth_stack
)

app.synth()
