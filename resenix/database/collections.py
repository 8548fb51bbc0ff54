# Collection Names
COLLECTIONS = {
    'equipments': 'equipments',
    'equipment_usage': 'equipment_usage',
    'tasks': 'tasks',
    'users': 'users',
    'requisitions': 'materials',
    'orders': 'orders',
    'vendors': 'vendors',
    'reports': 'reports',
    'counters': 'counters',
}

# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'equipments': {
        'fields': ['name', 'serial_number', 'asset_number', 'asset_type', 'location', 'status', 'image_url', 'operating_hours', 'cumulative_hours', 'created_at', 'updated_at'],
        'required': ['name', 'serial_number', 'asset_number', 'location', 'status', 'operating_hours'],
        'indexes': ['status', 'asset_number']
    },
    'equipment_usage': {
        'fields': ['equipment_id', 'usage', 'maintenances'],
        'required': ['equipment_id'],
        'indexes': ['equipment_id']
    },
    'tasks': {
        'fields': ['equipment_id', 'maintenance_type', 'due_date', 'status', 'resources', 'notes', 'created_at', 'completed_at'],
        'required': ['equipment_id', 'maintenance_type', 'due_date', 'status'],
        'indexes': ['equipment_id', 'status', 'due_date']
    },
    'users': {
        'fields': ['email', 'role', 'status', 'permissions', 'created_at', 'updated_at'],
        'required': ['email', 'role', 'status'],
        'indexes': ['role', 'status', 'email']
    },
    'materials': {
        'fields': ['pr_number', 'date', 'requester', 'location', 'department', 'items', 'status', 'justification'],
        'required': ['pr_number', 'requester', 'location', 'department', 'items', 'status'],
        'indexes': ['status', 'pr_number']
    },
    'orders': {
        'fields': ['po_number', 'pr_number', 'vendor', 'payment_terms', 'delivery_date', 'items', 'subtotal', 'tax_rate', 'tax_amount', 'shipping_cost', 'total', 'notes', 'status'],
        'required': ['po_number', 'pr_number', 'vendor', 'items', 'total', 'status'],
        'indexes': ['status', 'po_number', 'pr_number']
    },
    'vendors': {
        'fields': ['name', 'contact', 'email', 'phone', 'address'],
        'required': ['name'],
        'indexes': ['name']
    },
    'reports': {
        'fields': ['file_name', 'file_url', 'type', 'equipment_id', 'equipment_name', 'generated_at', 'generated_by', 'file_size'],
        'required': ['file_name', 'type', 'generated_at', 'generated_by'],
        'indexes': ['type', 'equipment_id', 'generated_at']
    },
    'counters': {
        'fields': ['year', 'counter', 'last_updated'],
        'required': ['year', 'counter'],
        'indexes': ['year']
    },
}
