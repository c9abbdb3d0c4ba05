#!/usr/bin/env python3
"""Local runner for the backup API (seeded in-memory data store by default)"""
import os
from pos_backup import create_app

if __name__ == '__main__':
    app = create_app(os.environ.get('FLASK_ENV', 'development'))

    # The reloader child owns the scheduler in development
    app.run(
        host=os.environ.get('HOST', '127.0.0.1'),
        port=int(os.environ.get('PORT', 5000)),
        debug=app.config.get('DEBUG', False),
    )
