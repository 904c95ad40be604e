from clinic_calendar import APP_HOST, APP_PORT, create_app

if __name__ == "__main__":
    create_app().run(host=APP_HOST, port=APP_PORT)
