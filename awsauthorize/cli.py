"""Add self public IP to an AWS security group

Usage:
  awsauthorize [--security-group=<sg>] [--profile=<profile_name>] [--config=<config_file>] [--debug] <awsregion>
  awsauthorize (-h | --help)
  awsauthorize --version

Options:
  -h --help                        Show this screen
  --version                        Show version
  -s <sg>, --security-group=<sg>   Security Group [default: SelfAdd]
  --profile=<profile_name>         Select a credentials profile from the
                                   ~/.aws/credentials file. When not specified,
                                   normal boto3 credential discovery is used.
  --config=<config_file>           Read profile_name and checkip_url from the
                                   Options section of this file.
  --debug                          Log debug messages.
  <awsregion>                      AWS Region

"""
import sys
import logging
import configparser
from configparser import ConfigParser

from docopt import docopt, DocoptExit

from awsauthorize import __version__
from awsauthorize.app import (
    CHECKIP_URL,
    AwsSession,
    BaseError,
    ConfigurationError,
    ValidationError,
    check_region,
    get_public_ip,
)

LOG_FORMAT = '%(asctime)s %(filename)s:%(lineno)d: %(levelname)s %(message)s'

logger = logging.getLogger(__name__)


def get_configuration(arguments):
    """Work out the credentials profile and I.P. echo url to use.

    Args:
        arguments (dict[str, Any]): the parsed command line.

    Returns:
        tuple(Optional[str], str): the profile name and url.
    """
    profile_name = None
    url = CHECKIP_URL
    if arguments['--config']:
        message = 'Can not read Options from config file "{}"'.format(
            arguments['--config']
        )
        c = ConfigParser(interpolation=None)
        try:
            found = c.read([arguments['--config']])
        except (configparser.Error, UnicodeDecodeError) as exc:
            raise ConfigurationError('{}: {}'.format(message, exc)) from exc
        if not found or not c.has_section('Options'):
            raise ConfigurationError(message)
        values = dict(c.items('Options'))
        if 'profile_name' in values:
            profile_name = values['profile_name']
        if 'checkip_url' in values:
            url = values['checkip_url']
    if arguments['--profile']:
        profile_name = arguments['--profile']
    return profile_name, url


def authorize(arguments):
    region = arguments['<awsregion>']
    group_name = arguments['--security-group']
    profile_name, url = get_configuration(arguments)
    ip_address = get_public_ip(url)
    check_region(region)
    session = AwsSession(region, profile_name=profile_name)
    try:
        session.authorize_ingress(group_name, ip_address)
    except BaseError:
        logger.error(
            'Can not authorize IP "%s" to Security Group "%s"',
            ip_address, group_name
        )
        raise


def main(argv=None):
    try:
        arguments = docopt(
            __doc__, argv=argv, version='awsauthorize {}'.format(__version__)
        )
    except DocoptExit:
        sys.stderr.write(__doc__)
        sys.exit(-1)
    logging.basicConfig(
        stream=sys.stderr,
        format=LOG_FORMAT,
        level=logging.DEBUG if arguments['--debug'] else logging.INFO
    )
    try:
        authorize(arguments)
    except ValidationError as exc:
        logger.error('%s', exc)
        sys.stderr.write(__doc__)
        sys.exit(-1)
    except BaseError as exc:
        logger.error('%s', exc)
        sys.exit(-1)


if __name__ == '__main__':
    main()
