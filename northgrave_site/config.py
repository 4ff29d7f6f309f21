REQUIRED_PARAMS = [
    'hosted_zone_id',
    'zone_name',
    'staging_domain',
    'production_domain',
    'cookie_domain',
    'public_key_file',
]


def load_cdk_params(path='.cdk-params'):
    # .cdk-params should be of the form:
    # key=value
    with open(path) as f:
        lines = f.read().splitlines()
    params = {}
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        key, _, value = line.partition('=')
        params[key.strip()] = value.strip()
    missing = [key for key in REQUIRED_PARAMS if key not in params]
    if missing:
        raise KeyError(f'.cdk-params is missing: {", ".join(missing)}')
    return params


def read_public_key(params):
    with open(params['public_key_file']) as f:
        return f.read()
