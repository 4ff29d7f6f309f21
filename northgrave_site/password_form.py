import requests

AUTH_PATH = '/api/auth'
DEFAULT_REDIRECT = '/vault/projects'
INVALID_PASSWORD = 'Invalid password. Please try again.'
REQUEST_FAILED = 'An error occurred. Please try again.'


class PasswordForm:
    """Submits the vault password to the auth endpoint.

    The session keeps whatever cookies the endpoint sets, so later requests
    to /vault/* carry them.
    """

    def __init__(self, base_url, session=None, query=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.query = query or {}
        self.timeout = timeout
        self.error = ''
        self.is_loading = False

    @property
    def redirect_url(self):
        return self.query.get('redirect') or DEFAULT_REDIRECT

    def submit(self, password):
        self.error = ''
        if not password:
            return None
        self.is_loading = True
        try:
            response = self.session.post(
                f'{self.base_url}{AUTH_PATH}',
                json={'password': password},
                timeout=self.timeout
            )
            if response.ok:
                return self.redirect_url
            self.error = error_message(response)
            return None
        except requests.RequestException:
            self.error = REQUEST_FAILED
            return None
        finally:
            self.is_loading = False


def error_message(response):
    try:
        data = response.json()
    except ValueError:
        return REQUEST_FAILED
    if isinstance(data, dict) and data.get('message'):
        return data['message']
    return INVALID_PASSWORD
