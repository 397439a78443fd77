def init_app(app):
    """Initialize all API blueprints."""
    from truthspot.api.auth import bp as auth_bp
    from truthspot.api.categories import bp as categories_bp
    from truthspot.api.categories import tags_bp
    from truthspot.api.health import bp as health_bp
    from truthspot.api.maps import bp as maps_bp
    from truthspot.api.spots import bp as spots_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(spots_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(tags_bp)
    app.register_blueprint(maps_bp)
    app.register_blueprint(health_bp)
