import logging

from custody import Settings, create_app

settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

app = create_app(settings)

if __name__ == '__main__':
    app.run(debug=settings.debug)
