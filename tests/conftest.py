import pytest

SAMPLE_CSV = """No.,Kode Barang,Nama Barang,Kategori,Model,Satuan,Stock Sebelumnya,Stock Sekarang,Stock Keluar,Harga Satuan,Umur Stock (Dalam Hari),Lokasi
1,KB-001,Filter Oli,Filter,X1,pcs,20,10,-4,"15,000",30,Rak A
2,KB-002,"Busi, Iridium",Kelistrikan,Z2,pcs,5,0,20,"45,000",120,Rak B
3,KB-003,Kampas Rem Depan Set Lengkap,Rem,R3,set,8,8,0,"120,000",400,Rak C
4,KB-004,Aki Kering,Kelistrikan,A4,unit,3,6,1,"650,000",abc,Rak D
"""


@pytest.fixture
def sample_csv():
    """A small export with quoted thousands separators and a quoted comma in a name."""
    return SAMPLE_CSV


@pytest.fixture
def records():
    """Already-ingested records, as the aggregation and table functions receive them."""
    return [
        {
            "No.": 1,
            "Kode Barang": "KB-001",
            "Nama Barang": "Filter Oli",
            "Kategori": "Filter",
            "Stock Sebelumnya": 20.0,
            "Stock Sekarang": 10.0,
            "Stock Keluar": 4.0,
            "Harga Satuan": 15000.0,
            "Umur Stock (Dalam Hari)": 30.0,
            "MinStockThreshold": 3,
        },
        {
            "No.": 2,
            "Kode Barang": "KB-002",
            "Nama Barang": "Busi Iridium",
            "Kategori": "Kelistrikan",
            "Stock Sebelumnya": 5.0,
            "Stock Sekarang": 0.0,
            "Stock Keluar": 20.0,
            "Harga Satuan": 45000.0,
            "Umur Stock (Dalam Hari)": 120.0,
            "MinStockThreshold": 5,
        },
        {
            "No.": 3,
            "Kode Barang": "KB-003",
            "Nama Barang": "Kampas Rem Depan Set Lengkap",
            "Kategori": "Rem",
            "Stock Sebelumnya": 8.0,
            "Stock Sekarang": 8.0,
            "Stock Keluar": 0.0,
            "Harga Satuan": 120000.0,
            "Umur Stock (Dalam Hari)": 400.0,
            "MinStockThreshold": 2,
        },
        {
            "No.": 4,
            "Kode Barang": "KB-004",
            "Nama Barang": "Aki Kering",
            "Kategori": "Kelistrikan",
            "Stock Sebelumnya": 3.0,
            "Stock Sekarang": 6.0,
            "Stock Keluar": 1.0,
            "Harga Satuan": 650000.0,
            "Umur Stock (Dalam Hari)": 0.0,
            "MinStockThreshold": 2,
        },
    ]
