def register_namespaces(api):
    from .auth_routes import auth_ns
    from .product_routes import product_ns
    from .meeting_routes import meeting_ns
    from .category_routes import category_ns
    from .dashboard_routes import dashboard_ns
    from .demo_routes import demo_ns
    from .billing_routes import billing_ns

    api.add_namespace(auth_ns)
    api.add_namespace(product_ns)
    api.add_namespace(meeting_ns)
    api.add_namespace(category_ns)
    api.add_namespace(dashboard_ns)
    api.add_namespace(demo_ns)
    api.add_namespace(billing_ns)
