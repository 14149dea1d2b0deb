import re
import socket
import logging

import requests
from boto3.session import Session
from botocore import exceptions

CHECKIP_URL = 'http://checkip.amazonaws.com'
REGION_HOSTNAME = 'ec2.{}.amazonaws.com'
IPV4_PATTERN = re.compile(r'[0-9]+\.[0-9]+\.[0-9]+\.[0-9]+')
DUPLICATE_CODE = 'InvalidPermission.Duplicate'
FROM_PORT = 0
TO_PORT = 65535
PROTOCOL = 'tcp'

logger = logging.getLogger(__name__)


class BaseError(Exception):
    pass


class NetworkError(BaseError):
    pass


class FormatError(BaseError):
    pass


class GroupLookupError(BaseError):
    pass


class ProviderError(BaseError):
    pass


class ValidationError(BaseError):
    pass


class ConfigurationError(BaseError):
    pass


def get_public_ip(url=CHECKIP_URL):
    """Fetch the caller's public I.P. address from an address-echo service.

    Args:
        url (str): the service url; its body must be the bare address.

    Returns:
        str: the I.P. address, stripped of surrounding whitespace.

    Raises:
        NetworkError: when the request fails or the body can't be read.
    """
    try:
        response = requests.get(url)
        response.raise_for_status()
        body = response.text
    except requests.RequestException as exc:
        logger.error('Can not fetch IP address from url "%s": %s', url, exc)
        raise NetworkError(
            'Can not fetch IP address from url "{}"'.format(url)
        ) from exc
    return body.strip()


def to_cidr(ip_address):
    """Convert a dotted-decimal I.P. address to a single host CIDR block.

    Args:
        ip_address (str): the I.P. address.

    Returns:
        str: the CIDR block, e.g. ``203.0.113.7/32``.
    """
    if not IPV4_PATTERN.fullmatch(ip_address):
        raise FormatError(
            'Not a recognized IPv4 address "{}"'.format(ip_address)
        )
    return '{}/32'.format(ip_address)


def validate_region(region):
    """Determine whether the region has a resolvable EC2 endpoint."""
    hostname = REGION_HOSTNAME.format(region)
    try:
        socket.gethostbyname(hostname)
    except (OSError, UnicodeError):
        logger.debug('Could not resolve %s', hostname, exc_info=True)
        return False
    return True


def check_region(region):
    if not validate_region(region):
        raise ValidationError('Invalid AWS Region "{}"'.format(region))


class AwsSession(object):
    """Lazily created boto3 session and EC2 client for a single region.

    Args:
        region (str): the AWS region.
        profile_name (Optional[str]): a profile from the shared credentials
            file. When not given, normal boto3 credential discovery is used.
    """

    def __init__(self, region, profile_name=None):
        self.region = region
        self.profile_name = profile_name
        self._session = None
        self._ec2 = None

    @property
    def session(self):
        if self._session is None:
            try:
                self._session = Session(
                    region_name=self.region,
                    profile_name=self.profile_name
                )
            except exceptions.BotoCoreError as exc:
                logger.error('Error establishing AWS session: %s', exc)
                raise ProviderError(str(exc)) from exc
        return self._session

    @property
    def ec2(self):
        if self._ec2 is None:
            self._ec2 = self._client('ec2')
        return self._ec2

    def _client(self, service):
        session = self.session
        try:
            return session.client(service)
        except exceptions.BotoCoreError as exc:
            logger.error('Error creating %s client: %s', service, exc)
            raise ProviderError(str(exc)) from exc

    def get_security_group_id(self, group_name):
        """Query EC2 API for the id of the security group with the given name.

        Args:
            group_name (str): the security group name.

        Returns:
            str: the security group id.

        Raises:
            GroupLookupError: when zero or several groups have that name.
        """
        filters = [{'Name': 'group-name', 'Values': [group_name]}]
        try:
            groups = self.ec2.describe_security_groups(Filters=filters)
        except (exceptions.ClientError, exceptions.BotoCoreError) as exc:
            logger.error('DescribeSecurityGroups failed: %s', exc)
            raise ProviderError(str(exc)) from exc
        matches = groups['SecurityGroups']
        if len(matches) != 1:
            raise GroupLookupError(
                'Could not match a security group "{}" ({} found)'.format(
                    group_name, len(matches)
                )
            )
        return matches[0]['GroupId']

    def identity(self):
        """Return the user id of the caller's credentials."""
        sts = self._client('sts')
        try:
            caller = sts.get_caller_identity()
        except (exceptions.ClientError, exceptions.BotoCoreError) as exc:
            logger.error('GetCallerIdentity failed: %s', exc)
            raise ProviderError(str(exc)) from exc
        logger.debug('Calling as %s', caller.get('Arn'))
        return caller['UserId']

    def authorize_ingress(self, group_name, ip_address):
        """Add an all-ports TCP ingress permission for the given I.P. address
        on the named security group.

        An ingress rule that already exists is left as it is.

        Args:
            group_name (str): the security group name.
            ip_address (str): the I.P. address to add.

        Returns:
            bool: True when a rule was added, False when it already existed.
        """
        group_id = self.get_security_group_id(group_name)
        cidr_ip = to_cidr(ip_address)
        self.identity()
        try:
            self.ec2.authorize_security_group_ingress(
                GroupId=group_id,
                IpPermissions=[dict(
                    IpProtocol=PROTOCOL,
                    FromPort=FROM_PORT,
                    ToPort=TO_PORT,
                    IpRanges=[dict(CidrIp=cidr_ip)]
                )]
            )
        except exceptions.ClientError as exc:
            code = exc.response['Error']['Code']
            if code == DUPLICATE_CODE:
                logger.info('Ingress already added.')
                return False
            logger.error(
                'Error authorizing ingress SecurityGroup "%s", IP "%s": %s',
                group_name, ip_address, exc
            )
            raise ProviderError(str(exc)) from exc
        except exceptions.BotoCoreError as exc:
            logger.error(
                'Error authorizing ingress SecurityGroup "%s", IP "%s": %s',
                group_name, ip_address, exc
            )
            raise ProviderError(str(exc)) from exc
        logger.info('Authorisation completed')
        return True
