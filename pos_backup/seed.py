"""Demo POS records loaded into the in-memory store in development."""


def demo_collections():
    return {
        'products': [
            {
                'id': 1, 'name': 'Coffee', 'category': 'Beverages', 'quantity': 120,
                'barcode': '4006381333931', 'cost': 1.2, 'price': 3.5,
                'supplierId': 1, 'minStockLevel': 20, 'createdAt': '2024-01-02T09:00:00Z',
            },
            {
                'id': 2, 'name': 'Tea', 'category': 'Beverages', 'quantity': 80,
                'barcode': '4006381333948', 'cost': 0.8, 'price': 2.75,
                'supplierId': 1, 'minStockLevel': 15, 'createdAt': '2024-01-02T09:05:00Z',
            },
            {
                'id': 3, 'name': 'Croissant, butter', 'category': 'Bakery', 'quantity': 35,
                'barcode': '4006381333955', 'cost': 0.9, 'price': 2.2,
                'supplierId': 2, 'minStockLevel': 10, 'createdAt': '2024-01-03T07:30:00Z',
            },
        ],
        'sales': [
            {
                'id': 1,
                'items': [{'id': 1, 'productId': 1, 'productName': 'Coffee', 'quantity': 2, 'price': 3.5, 'total': 7.0}],
                'subtotal': 7.0, 'discount': 0, 'tax': 0.56, 'total': 7.56,
                'paymentMethods': [{'type': 'card', 'amount': 7.56}], 'change': 0,
                'createdAt': '2024-01-05T10:15:00Z', 'userId': 1, 'userName': 'cashier',
            },
            {
                'id': 2,
                'items': [{'id': 2, 'productId': 3, 'productName': 'Croissant, butter', 'quantity': 1, 'price': 2.2, 'total': 2.2}],
                'subtotal': 2.2, 'discount': 0, 'tax': 0.18, 'total': 2.38,
                'paymentMethods': [{'type': 'cash', 'amount': 5.0}], 'change': 2.62,
                'createdAt': '2024-01-06T08:40:00Z', 'userId': 1, 'userName': 'cashier',
            },
        ],
        'customers': [
            {
                'id': 1, 'name': 'Ada Byron', 'email': 'ada@example.com', 'phone': '555-0100',
                'loyaltyPoints': 42, 'isActive': True, 'createdAt': '2024-01-04T12:00:00Z',
            },
        ],
        'users': [
            {'id': 1, 'username': 'cashier', 'role': 'cashier', 'isActive': True},
            {'id': 2, 'username': 'manager', 'role': 'manager', 'isActive': True},
        ],
        'suppliers': [
            {'id': 1, 'name': 'Bean Traders', 'contactPerson': 'J. Kaldi', 'email': 'orders@beantraders.example'},
            {'id': 2, 'name': 'Corner Bakery', 'contactPerson': 'M. Baker', 'email': 'hello@cornerbakery.example'},
        ],
        'purchaseorders': [
            {
                'id': 1, 'supplierId': 1, 'status': 'received',
                'items': [{'productId': 1, 'quantity': 50, 'unitCost': 1.2}],
                'total': 60.0, 'createdAt': '2024-01-01T15:00:00Z',
            },
        ],
    }
