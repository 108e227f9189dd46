if __name__ == "__main__":
    import logging
    import os
    import sys

    os.environ.setdefault("FLASK_ENV", "dev")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    from school_library import create_app
    from school_library.utils.web import EXTENSION

    app = create_app()
    if "--populate" in sys.argv:
        from school_library.populate_db import populate

        with app.app_context():
            session = app.extensions[EXTENSION]["database"].session()
            try:
                populate(session)
            finally:
                session.close()
    app.run(debug=True)
