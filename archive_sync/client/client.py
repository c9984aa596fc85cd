"""
Archive Sync Client - Main Entry Point

This is the main entry point for the Archive Sync client. Parses the
command line and runs one sync of the archive into the object store.

Author: Archive Sync Project
"""

import sys
import argparse


def main():
    """
    Main entry point for Archive Sync client.

    Command-line flags override config.json values for this run only.
    """
    parser = argparse.ArgumentParser(
        description='Archive Sync - mirror an FTP archive into object storage',
        epilog='Values not given on the command line are read from the config file'
    )

    parser.add_argument('--config', help='Path to config.json (default ./config.json)')
    parser.add_argument('--archive', help='Site URL to mirror content from: ftp://site/dir')
    parser.add_argument('--bucket', help='Bucket to mirror content into')
    parser.add_argument('--archive-user', dest='archive_user', help='Site userid to use with FTP')
    parser.add_argument('--archive-pass', dest='archive_password', help='Site password to use with FTP')
    parser.add_argument('--upload-url', dest='upload_url', help='Upload service host:port or URL')
    parser.add_argument('--credentials-file', dest='credentials_file',
                        help='Identity token or signing credentials file for the upload service')
    parser.add_argument('--storage-endpoint', dest='storage_endpoint_url',
                        help='Object storage endpoint URL (S3-compatible)')
    parser.add_argument('--max-archive-errors', dest='max_archive_errors', type=int,
                        help='Archive retrieval failures tolerated before exiting')

    args = parser.parse_args()

    overrides = vars(args).copy()
    config_file = overrides.pop('config')

    from archive_sync.client.cli import run_cli_sync
    return run_cli_sync(config_file, overrides)


if __name__ == '__main__':
    sys.exit(main())
